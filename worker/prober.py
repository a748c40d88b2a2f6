# ============================================================================
# REGISTRY PROBER
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Single registry health probe
# PURPOSE: Call a registry's catalog endpoint and turn the outcome into data
# CREATED: 17 OCT 2026
# ============================================================================
"""
Registry Prober

Performs one health check against a registry:

    GET https://<registry>/v2/_catalog
    Authorization: Basic base64(<username>:<password>)

Outcome rules:
- Transport error or timeout          -> failure, message = error text
- Non-2xx status                      -> failure, message = "HTTP <code>: <body>"
- JSON body with non-empty "errors"   -> failure, message = joined error list
- Anything else                       -> success, message = response body

probe() never raises for network or protocol problems; every failure mode
comes back as a CheckResult with success=False.

Certificate verification is on by default. Registries with self-signed
certificates need REGISTRY_INSECURE_TLS=true.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, List, Optional
from urllib.parse import urlsplit

import httpx

from core.models import CheckResult

logger = logging.getLogger(__name__)


# ============================================================================
# ABSTRACT PROBER
# ============================================================================

class Prober(ABC):
    """Abstract base for registry probers."""

    @abstractmethod
    async def probe(self, url: str, username: str, password: str) -> CheckResult:
        """
        Probe a registry once.

        Args:
            url: Registry host (or base URL)
            username: Basic auth user name
            password: Basic auth password

        Returns:
            CheckResult (failures are results, not exceptions)
        """
        pass

    async def close(self) -> None:
        """Clean up resources."""
        pass


# ============================================================================
# HTTP PROBER
# ============================================================================

def build_catalog_url(registry_url: str, catalog_path: str = "/v2/_catalog") -> str:
    """
    Build the probe URL for a registry.

    Bare hosts get https://. Keys that already carry a scheme
    (https://index.docker.io/v1/) are reduced to scheme and host.
    """
    if "://" in registry_url:
        parts = urlsplit(registry_url)
        base = f"{parts.scheme}://{parts.netloc}"
    else:
        base = f"https://{registry_url.rstrip('/')}"
    return f"{base}{catalog_path}"


def _registry_errors(body: str) -> Optional[List[Any]]:
    """Return the registry's error list if the body carries a non-empty one."""
    try:
        document = json.loads(body)
    except ValueError:
        return None
    if isinstance(document, dict):
        errors = document.get("errors")
        if errors:
            return errors if isinstance(errors, list) else [errors]
    return None


def _format_errors(errors: List[Any]) -> str:
    parts = []
    for error in errors:
        if isinstance(error, dict):
            code = error.get("code", "UNKNOWN")
            message = error.get("message", "")
            parts.append(f"{code}: {message}" if message else str(code))
        else:
            parts.append(str(error))
    return "; ".join(parts)


class RegistryProber(Prober):
    """
    Probes registries over HTTPS with basic auth.

    One httpx.AsyncClient is shared by all checkers.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        insecure_tls: bool = False,
        catalog_path: str = "/v2/_catalog",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize prober.

        Args:
            timeout: Per-request timeout in seconds
            insecure_tls: Skip certificate verification
            catalog_path: Endpoint probed on each registry
            transport: Optional httpx transport (tests)
        """
        self.timeout = timeout
        self.insecure_tls = insecure_tls
        self.catalog_path = catalog_path
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if insecure_tls:
            logger.warning("TLS certificate verification is DISABLED for registry probes")

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=not self.insecure_tls,
                transport=self._transport,
            )
        return self._client

    async def probe(self, url: str, username: str, password: str) -> CheckResult:
        full_url = build_catalog_url(url, self.catalog_path)
        start_time = time.monotonic()

        logger.debug(f"Probing {full_url} as user {username or '<anonymous>'}")

        try:
            response = await self._get_client().get(
                full_url,
                auth=httpx.BasicAuth(username, password),
            )
            body = response.text
        except httpx.HTTPError as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            return CheckResult.failed(url, str(e) or type(e).__name__, duration_ms)

        duration_ms = int((time.monotonic() - start_time) * 1000)

        if not response.is_success:
            return CheckResult.failed(
                url,
                f"HTTP {response.status_code}: {body.strip()}",
                duration_ms,
            )

        errors = _registry_errors(body)
        if errors:
            return CheckResult.failed(url, _format_errors(errors), duration_ms)

        return CheckResult.ok(url, body, duration_ms)

    async def close(self) -> None:
        """Close the shared HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["Prober", "RegistryProber", "build_catalog_url"]
