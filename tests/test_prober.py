# ============================================================================
# PROBER TESTS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Tests - HTTP registry probe
# PURPOSE: Verify success/failure classification of catalog probes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Prober Tests

Uses httpx.MockTransport in place of a live registry.

Run with:
    pytest tests/test_prober.py -v
"""

import asyncio
import base64
import json
import pytest

import httpx

from worker.prober import RegistryProber, build_catalog_url


# ============================================================================
# FIXTURES
# ============================================================================

def _probe(handler, url="reg.example.com", username="user", password="pass", **kwargs):
    """Run one probe against a mock transport."""
    async def run():
        prober = RegistryProber(transport=httpx.MockTransport(handler), **kwargs)
        try:
            return await prober.probe(url, username, password)
        finally:
            await prober.close()

    return asyncio.run(run())


# ============================================================================
# URL BUILDING
# ============================================================================

class TestBuildCatalogUrl:

    @pytest.mark.parametrize("registry_url,expected", [
        ("reg.example.com", "https://reg.example.com/v2/_catalog"),
        ("reg.example.com:5000", "https://reg.example.com:5000/v2/_catalog"),
        ("reg.example.com/", "https://reg.example.com/v2/_catalog"),
        ("https://index.docker.io/v1/", "https://index.docker.io/v2/_catalog"),
        ("http://localhost:5000", "http://localhost:5000/v2/_catalog"),
    ])
    def test_catalog_url(self, registry_url, expected):
        assert build_catalog_url(registry_url) == expected

    def test_custom_path(self):
        assert build_catalog_url("reg.example.com", "/v2/") == "https://reg.example.com/v2/"


# ============================================================================
# PROBE CLASSIFICATION
# ============================================================================

class TestRegistryProber:

    def test_success_returns_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, text='{"repositories": ["app"]}')

        result = _probe(handler)

        assert result.success is True
        assert result.url == "reg.example.com"
        assert result.message == '{"repositories": ["app"]}'
        assert result.duration_ms is not None
        assert seen["url"] == "https://reg.example.com/v2/_catalog"
        expected = base64.b64encode(b"user:pass").decode("ascii")
        assert seen["auth"] == f"Basic {expected}"

    def test_unauthorized_status(self):
        def handler(request):
            return httpx.Response(401, text="unauthorized")

        result = _probe(handler)

        assert result.success is False
        assert result.message == "HTTP 401: unauthorized"

    def test_error_document_with_success_status(self):
        body = {"errors": [{"code": "UNAUTHORIZED", "message": "authentication required"}]}

        def handler(request):
            return httpx.Response(200, text=json.dumps(body))

        result = _probe(handler)

        assert result.success is False
        assert result.message == "UNAUTHORIZED: authentication required"

    def test_empty_error_list_is_success(self):
        def handler(request):
            return httpx.Response(200, text='{"errors": [], "repositories": []}')

        assert _probe(handler).success is True

    def test_non_json_body_is_success(self):
        def handler(request):
            return httpx.Response(200, text="ok")

        result = _probe(handler)
        assert result.success is True
        assert result.message == "ok"

    def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = _probe(handler)

        assert result.success is False
        assert "connection refused" in result.message

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("", request=request)

        result = _probe(handler)

        assert result.success is False
        assert result.message == "ReadTimeout"

    def test_client_reused_between_probes(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text="{}")

        async def run():
            prober = RegistryProber(transport=httpx.MockTransport(handler))
            await prober.probe("a.example.com", "u", "p")
            first = prober._client
            await prober.probe("b.example.com", "u", "p")
            assert prober._client is first
            await prober.close()
            assert prober._client is None

        asyncio.run(run())
        assert len(calls) == 2
