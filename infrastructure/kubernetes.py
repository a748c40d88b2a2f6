# ============================================================================
# KUBERNETES CLIENT FACTORY
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Kubernetes API access
# PURPOSE: Build a CoreV1Api client from in-cluster or kubeconfig settings
# CREATED: 17 OCT 2026
# ============================================================================
"""
Kubernetes Client Factory

The monitor normally runs as a sidecar and uses the pod's service account
(in-cluster config). Outside a cluster it falls back to a kubeconfig file,
which is handy for running the monitor from a workstation.

Failure to configure either is fatal at startup (ClusterAccessError).
"""

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from core.contracts import ClusterAccessError

logger = logging.getLogger(__name__)


def create_core_api(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """
    Create a CoreV1Api client.

    Args:
        kubeconfig: Optional kubeconfig path, tried when in-cluster config
                    is unavailable (defaults to ~/.kube/config)

    Returns:
        Configured CoreV1Api

    Raises:
        ClusterAccessError: If no configuration could be loaded
    """
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except ConfigException as in_cluster_error:
        try:
            config.load_kube_config(config_file=kubeconfig)
            logger.info(f"Loaded kubeconfig ({kubeconfig or 'default location'})")
        except (ConfigException, OSError) as e:
            raise ClusterAccessError(
                f"No Kubernetes configuration available: "
                f"in-cluster: {in_cluster_error}; kubeconfig: {e}"
            ) from e

    return client.CoreV1Api()


__all__ = ["create_core_api"]
