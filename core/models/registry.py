# ============================================================================
# CLAUDE CONTEXT - REGISTRY MODEL
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core model - Credentialed check target
# PURPOSE: One registry discovered from a dockerconfigjson secret
# LAST_REVIEWED: 17 OCT 2026
# EXPORTS: Registry
# DEPENDENCIES: pydantic
# ============================================================================
"""
Registry Model

Registry = one credentialed check target.

The URL is the identity key: the reconciler keys its live checkers by it,
and a desired set never holds two registries with the same URL.
Registries are immutable and shared read-only with their checker.
"""

import hashlib

from pydantic import BaseModel, ConfigDict, Field


class Registry(BaseModel):
    """
    A container registry and the credentials used to probe it.

    Produced by the registry source, owned by the reconciler, handed
    by reference to exactly one checker.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        description="Name of the secret this registry was read from (not unique)"
    )
    url: str = Field(
        ...,
        min_length=1,
        description="Registry host, probe target and identity key"
    )
    username: str = Field(default="", description="Basic auth user name")
    password: str = Field(default="", repr=False, description="Basic auth password")

    @property
    def credentials_fingerprint(self) -> str:
        """SHA-256 of the credentials, used to detect rotation."""
        digest = hashlib.sha256(f"{self.username}:{self.password}".encode("utf-8"))
        return digest.hexdigest()

    def describe(self) -> str:
        """Log-safe one-line description (never includes the password)."""
        return f"{self.name} ({self.url} / user:{self.username})"


__all__ = ["Registry"]
