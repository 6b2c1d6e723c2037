#!/usr/bin/env python3
"""Report which egress ProxyGroup Pods carry the readiness condition."""

from __future__ import annotations

import argparse
import json
import subprocess
import sys
from typing import Dict, Iterable, List

CONDITION_TYPE = "tailscale.com/egress-services"
POD_SELECTOR = "tailscale.com/managed=true,tailscale.com/parent-resource-type=proxygroup"


class ValidationError(RuntimeError):
    pass


def run(cmd: Iterable[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


def list_pods(namespace: str, group: str | None) -> List[dict]:
    selector = POD_SELECTOR
    if group:
        selector += f",tailscale.com/parent-resource={group}"
    result = run(["kubectl", "get", "pods", "-n", namespace, "-l", selector, "-o", "json"])
    if result.returncode != 0:
        raise ValidationError(f"kubectl get pods failed: {result.stderr.strip()}")
    return json.loads(result.stdout).get("items", [])


def readiness_by_pod(pods: Iterable[dict]) -> Dict[str, bool]:
    state: Dict[str, bool] = {}
    for pod in pods:
        conditions = pod.get("status", {}).get("conditions") or []
        state[pod["metadata"]["name"]] = any(
            c.get("type") == CONDITION_TYPE and c.get("status") == "True"
            for c in conditions
        )
    return state


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--namespace", default="tailscale")
    parser.add_argument("--group", help="Only check Pods of this ProxyGroup")
    args = parser.parse_args()

    try:
        state = readiness_by_pod(list_pods(args.namespace, args.group))
        if not state:
            raise ValidationError("no ProxyGroup Pods found")
    except ValidationError as exc:
        print(f"[FAIL] {exc}", file=sys.stderr)
        return 1

    for name, ready in sorted(state.items()):
        print(f"[{'OK' if ready else 'WAIT'}] {name}")
    return 0 if all(state.values()) else 1


if __name__ == "__main__":
    sys.exit(main())
