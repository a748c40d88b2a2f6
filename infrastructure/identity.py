# ============================================================================
# SELF IDENTITY RESOLUTION
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Pod identity lookup
# PURPOSE: Work out which pod this process is, for tagging check results
# CREATED: 17 OCT 2026
# ============================================================================
"""
Self Identity Resolution

Finds this process's pod by intersecting the addresses of the local network
interfaces with the IPs of the pods matched by a label selector (the
discovery hint).

When several matching pods share a local address (hostNetwork pods on the
same node), the pod whose name equals the local hostname is preferred.

Used once at startup. Any failure is fatal to the process.
"""

import logging
import socket
from typing import Callable, Iterable, List, Optional, Set

import psutil
from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from core.contracts import IdentityResolutionError
from core.models import SourceIdentity

logger = logging.getLogger(__name__)

_INET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def local_addresses() -> Set[str]:
    """Addresses of all local network interfaces (IPv4 and IPv6)."""
    addresses: Set[str] = set()
    for interface_addrs in psutil.net_if_addrs().values():
        for addr in interface_addrs:
            if addr.family in _INET_FAMILIES and addr.address:
                # Drop IPv6 zone index (fe80::1%eth0)
                addresses.add(addr.address.split("%", 1)[0])
    return addresses


def _pod_ips(pod: client.V1Pod) -> List[str]:
    status = pod.status
    if status is None:
        return []
    ips: List[str] = []
    if status.pod_ip:
        ips.append(status.pod_ip)
    for pod_ip in status.pod_ips or []:
        if pod_ip.ip and pod_ip.ip not in ips:
            ips.append(pod_ip.ip)
    return ips


class PodIdentityResolver:
    """
    Resolves the identity of the current pod.

    Args:
        core_api: Kubernetes CoreV1Api client
        address_provider: Returns the local interface addresses
        hostname: Local hostname, used to break ties
    """

    def __init__(
        self,
        core_api: client.CoreV1Api,
        address_provider: Callable[[], Iterable[str]] = local_addresses,
        hostname: Optional[str] = None,
    ):
        self._api = core_api
        self._address_provider = address_provider
        self._hostname = hostname or socket.gethostname()

    def resolve_self_identity(self, namespace: str, discovery_hint: str) -> SourceIdentity:
        """
        Find the pod this process runs in.

        Args:
            namespace: Namespace of the monitor pods
            discovery_hint: Label selector matching the monitor pods

        Returns:
            SourceIdentity of this pod

        Raises:
            IdentityResolutionError: If the pods cannot be listed or none
                of them owns a local address
        """
        try:
            pods = self._api.list_namespaced_pod(namespace, label_selector=discovery_hint)
        except ApiException as e:
            raise IdentityResolutionError(
                f"Failed to list pods in '{namespace}' with selector "
                f"'{discovery_hint}': {e.status} {e.reason}"
            ) from e
        except HTTPError as e:
            raise IdentityResolutionError(
                f"Kubernetes API unreachable listing pods in '{namespace}': {e}"
            ) from e

        local = set(self._address_provider())
        if not local:
            raise IdentityResolutionError("No local network addresses found")

        matches: List[SourceIdentity] = []
        for pod in pods.items or []:
            for ip in _pod_ips(pod):
                if ip in local:
                    matches.append(SourceIdentity(
                        address=ip,
                        pod_name=pod.metadata.name if pod.metadata else None,
                        namespace=namespace,
                    ))
                    break

        if not matches:
            raise IdentityResolutionError(
                f"None of {len(pods.items or [])} pod(s) matching '{discovery_hint}' "
                f"in '{namespace}' owns a local address ({', '.join(sorted(local))})"
            )

        if len(matches) > 1:
            for identity in matches:
                if identity.pod_name == self._hostname:
                    return identity
            logger.warning(
                f"{len(matches)} pods share a local address, using {matches[0]}"
            )

        return matches[0]


__all__ = ["PodIdentityResolver", "local_addresses"]
