# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Kubernetes-facing collaborators
# PURPOSE: Registry discovery and self identity resolution
# CREATED: 17 OCT 2026
# ============================================================================
"""
Infrastructure module for the registry monitor.

Provides:
- create_core_api: Kubernetes client from in-cluster config or kubeconfig
- SecretRegistrySource: Desired registry set from dockerconfigjson secrets
- PodIdentityResolver: Which pod am I (for tagging results)

Usage:
    from infrastructure import create_core_api, SecretRegistrySource

    api = create_core_api()
    registries = SecretRegistrySource(api).list_registries("monitoring")
"""

from infrastructure.kubernetes import create_core_api
from infrastructure.secrets import SecretRegistrySource, CredentialDecodeError
from infrastructure.identity import PodIdentityResolver, local_addresses

__all__ = [
    "create_core_api",
    "SecretRegistrySource",
    "CredentialDecodeError",
    "PodIdentityResolver",
    "local_addresses",
]
