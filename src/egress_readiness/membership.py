"""Check whether a Pod's address has been propagated into routing."""

from __future__ import annotations

import ipaddress
from typing import List, Sequence

from .model import RoutingMembership


def _version(address: str) -> int | None:
    try:
        return ipaddress.ip_address(address).version
    except ValueError:
        return None


def primary_family(addresses: Sequence[str]) -> List[str]:
    """Return the addresses sharing the family of the first one.

    Dual-stack matching is not supported; only the primary family is ever
    compared against routing membership.
    """

    if not addresses:
        return []
    version = _version(addresses[0])
    return [addr for addr in addresses if _version(addr) == version]


def address_in_membership(addresses: Sequence[str], membership: RoutingMembership) -> bool:
    """Return ``True`` if any endpoint address matches one of ``addresses``."""

    wanted = {addr.lower() for addr in primary_family(addresses)}
    if not wanted:
        return False
    return any(addr.lower() in wanted for addr in membership.all_addresses())
