# ============================================================================
# INFRASTRUCTURE HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Kubernetes API connectivity
# PURPOSE: Verify the secrets the monitor depends on are readable
# CREATED: 17 OCT 2026
# ============================================================================
"""
Infrastructure Health Checks

- KubernetesCheck: the service account can list secrets in the monitored
  namespace. Not required for readiness: a Kubernetes outage leaves the
  running checkers untouched.
"""

import asyncio

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check
from health.checks import components


@register_check(category="infrastructure", required_for_ready=False)
class KubernetesCheck(HealthCheckPlugin):
    """Kubernetes API reachability and secret read permission."""

    name = "kubernetes"
    timeout_seconds = 10.0

    async def check(self) -> HealthCheckResult:
        if components.core_api is None or components.config is None:
            return HealthCheckResult.unhealthy(message="Kubernetes client not initialized")

        namespace = components.config.discovery.namespace
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: components.core_api.list_namespaced_secret(namespace, limit=1),
            )
        except ApiException as e:
            return HealthCheckResult.unhealthy(
                message=f"Cannot list secrets: {e.status} {e.reason}",
                namespace=namespace,
                status_code=e.status,
            )
        except HTTPError as e:
            return HealthCheckResult.unhealthy(
                message=f"Kubernetes API unreachable: {e}",
                namespace=namespace,
            )

        return HealthCheckResult.healthy(
            message="Secrets readable",
            namespace=namespace,
        )


__all__ = ["KubernetesCheck"]
