"""Label keys and values shared with the ProxyGroup controllers."""

LABEL_MANAGED = "tailscale.com/managed"
LABEL_PARENT_TYPE = "tailscale.com/parent-resource-type"
LABEL_PARENT_NAME = "tailscale.com/parent-resource"
LABEL_PARENT_NAMESPACE = "tailscale.com/parent-resource-ns"
LABEL_PROXY_GROUP = "tailscale.com/proxy-group"
LABEL_SVC_TYPE = "tailscale.com/svc-type"

PARENT_TYPE_SVC = "svc"
PARENT_TYPE_PROXY_GROUP = "proxygroup"
SVC_TYPE_EGRESS = "egress"
