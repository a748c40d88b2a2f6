# ============================================================================
# REGISTRY SECRET SOURCE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Desired registry set discovery
# PURPOSE: Read dockerconfigjson secrets and decode them into Registry records
# CREATED: 17 OCT 2026
# ============================================================================
"""
Registry Secret Source

Reads every secret in a namespace and turns the docker credential payloads
into Registry records keyed by registry URL.

Secret formats:
    .dockerconfigjson  {"auths": {"<host>": {"username": ..., "password": ..., "auth": ...}}}
    .dockercfg         {"<host>": {"username": ..., "password": ..., "auth": ...}}

"auth" is base64("<username>:<password>") and is used when the explicit
fields are missing. Field names are matched case-insensitively.

Rules:
- Secrets are visited in API list order; within a secret, hosts in
  document order. The first record for a URL wins; later duplicates are
  dropped.
- A malformed secret or entry is logged and skipped; the rest of the
  set is still returned.
- A failure to list secrets raises RegistrySourceError. A partial set is
  never returned.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from core.contracts import RegistrySourceError
from core.models import Registry

logger = logging.getLogger(__name__)

DOCKER_CONFIG_JSON_KEY = ".dockerconfigjson"
DOCKER_CFG_KEY = ".dockercfg"


class CredentialDecodeError(ValueError):
    """A secret payload or entry could not be decoded."""


# ============================================================================
# PAYLOAD DECODING
# ============================================================================

def _b64decode_text(value: str) -> str:
    try:
        return base64.b64decode(value, validate=False).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise CredentialDecodeError(f"invalid base64 payload: {e}") from e


def _field(entry: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive field lookup."""
    for key, value in entry.items():
        if isinstance(key, str) and key.lower() == name:
            return value if isinstance(value, str) else None
    return None


def decode_auth_entry(entry: Any) -> Tuple[str, str]:
    """
    Extract (username, password) from one auths entry.

    Raises:
        CredentialDecodeError: If the entry carries no usable credentials
    """
    if not isinstance(entry, Mapping):
        raise CredentialDecodeError(f"expected an object, got {type(entry).__name__}")

    username = _field(entry, "username")
    password = _field(entry, "password")

    if username is None and password is None:
        auth = _field(entry, "auth")
        if not auth:
            raise CredentialDecodeError("entry has neither username/password nor auth")
        decoded = _b64decode_text(auth)
        if ":" not in decoded:
            raise CredentialDecodeError("auth field is not '<username>:<password>'")
        username, password = decoded.split(":", 1)

    return username or "", password or ""


def iter_docker_auths(data: Mapping[str, str]) -> Iterator[Tuple[str, Any]]:
    """
    Yield (host, entry) pairs from a secret's base64-encoded data map.

    Raises:
        CredentialDecodeError: If the payload is not valid JSON of the
            expected shape
    """
    if DOCKER_CONFIG_JSON_KEY in data:
        raw = _b64decode_text(data[DOCKER_CONFIG_JSON_KEY])
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialDecodeError(f"invalid {DOCKER_CONFIG_JSON_KEY}: {e}") from e
        auths = document.get("auths") if isinstance(document, dict) else None
    elif DOCKER_CFG_KEY in data:
        raw = _b64decode_text(data[DOCKER_CFG_KEY])
        try:
            auths = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CredentialDecodeError(f"invalid {DOCKER_CFG_KEY}: {e}") from e
    else:
        return

    if not isinstance(auths, dict):
        raise CredentialDecodeError("no 'auths' object in docker config")

    yield from auths.items()


# ============================================================================
# SOURCE
# ============================================================================

class SecretRegistrySource:
    """
    Desired-set source backed by Kubernetes secrets.

    Idempotent and side-effect free: every call re-lists the namespace.
    """

    def __init__(self, core_api: client.CoreV1Api):
        """
        Initialize source.

        Args:
            core_api: Kubernetes CoreV1Api client
        """
        self._api = core_api

    def list_registries(self, namespace: str) -> Dict[str, Registry]:
        """
        Read the desired registry set.

        Args:
            namespace: Namespace to search for registry secrets

        Returns:
            Mapping of registry URL to Registry (first record per URL)

        Raises:
            RegistrySourceError: If the secrets cannot be listed
        """
        try:
            secrets = self._api.list_namespaced_secret(namespace)
        except ApiException as e:
            raise RegistrySourceError(
                f"Failed to list secrets in namespace '{namespace}': "
                f"{e.status} {e.reason}"
            ) from e
        except HTTPError as e:
            raise RegistrySourceError(
                f"Kubernetes API unreachable listing secrets in '{namespace}': {e}"
            ) from e

        registries: Dict[str, Registry] = {}

        for secret in secrets.items or []:
            secret_name = secret.metadata.name if secret.metadata else "<unnamed>"
            data = secret.data or {}

            try:
                entries = list(iter_docker_auths(data))
            except CredentialDecodeError as e:
                logger.warning(f"Skipping secret {secret_name}: {e}")
                continue

            for url, entry in entries:
                if not url:
                    logger.warning(f"Skipping empty registry host in secret {secret_name}")
                    continue

                if url in registries:
                    logger.debug(
                        f"Duplicate registry {url} in secret {secret_name}, "
                        f"keeping the one from {registries[url].name}"
                    )
                    continue

                try:
                    username, password = decode_auth_entry(entry)
                except CredentialDecodeError as e:
                    logger.warning(f"Skipping registry {url} in secret {secret_name}: {e}")
                    continue

                registries[url] = Registry(
                    name=secret_name,
                    url=url,
                    username=username,
                    password=password,
                )

        return registries


__all__ = [
    "SecretRegistrySource",
    "CredentialDecodeError",
    "decode_auth_entry",
    "iter_docker_auths",
    "DOCKER_CONFIG_JSON_KEY",
    "DOCKER_CFG_KEY",
]
