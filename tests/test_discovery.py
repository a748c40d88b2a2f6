# ============================================================================
# DISCOVERY TESTS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Tests - Secret source, pod identity, cluster access
# PURPOSE: Verify the desired set and self identity read from Kubernetes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Discovery Tests

Covers:
1. dockerconfigjson / dockercfg decoding (case-insensitive fields, auth)
2. First-seen-wins for duplicate registry URLs
3. Malformed secrets skipped, list failures raised
4. Pod identity by local address, hostname tie-break
5. In-cluster / kubeconfig fallback

Uses kubernetes client models with a mocked CoreV1Api.

Run with:
    pytest tests/test_discovery.py -v
"""

import base64
import json
import pytest
from unittest.mock import MagicMock, patch

from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from core.contracts import (
    ClusterAccessError,
    IdentityResolutionError,
    RegistrySourceError,
)
from infrastructure.identity import PodIdentityResolver
from infrastructure.kubernetes import create_core_api
from infrastructure.secrets import (
    CredentialDecodeError,
    SecretRegistrySource,
    decode_auth_entry,
)


# ============================================================================
# FIXTURES
# ============================================================================

def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _docker_secret(name: str, auths: dict, key: str = ".dockerconfigjson") -> client.V1Secret:
    """Create a secret carrying a docker config."""
    payload = {"auths": auths} if key == ".dockerconfigjson" else auths
    return client.V1Secret(
        metadata=client.V1ObjectMeta(name=name),
        type="kubernetes.io/dockerconfigjson",
        data={key: _b64(json.dumps(payload))},
    )


def _source_for(*secrets) -> SecretRegistrySource:
    core_api = MagicMock()
    core_api.list_namespaced_secret.return_value = client.V1SecretList(items=list(secrets))
    return SecretRegistrySource(core_api)


def _pod(name: str, ip: str, extra_ips=()) -> client.V1Pod:
    pod_ips = [client.V1PodIP(ip=ip)] + [client.V1PodIP(ip=x) for x in extra_ips]
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name),
        status=client.V1PodStatus(pod_ip=ip, pod_ips=pod_ips),
    )


def _resolver_for(pods, local, hostname="unrelated-host") -> PodIdentityResolver:
    core_api = MagicMock()
    core_api.list_namespaced_pod.return_value = client.V1PodList(items=list(pods))
    return PodIdentityResolver(core_api, address_provider=lambda: local, hostname=hostname)


# ============================================================================
# AUTH ENTRY DECODING
# ============================================================================

class TestDecodeAuthEntry:

    def test_lowercase_fields(self):
        assert decode_auth_entry({"username": "u", "password": "p"}) == ("u", "p")

    def test_capitalized_fields(self):
        assert decode_auth_entry({"Username": "u", "Password": "p"}) == ("u", "p")

    def test_auth_field_fallback(self):
        entry = {"auth": _b64("robot:s3cr:et")}
        assert decode_auth_entry(entry) == ("robot", "s3cr:et")

    def test_entry_without_credentials(self):
        with pytest.raises(CredentialDecodeError):
            decode_auth_entry({"email": "a@example.com"})

    def test_non_object_entry(self):
        with pytest.raises(CredentialDecodeError):
            decode_auth_entry("not-an-object")


# ============================================================================
# SECRET REGISTRY SOURCE
# ============================================================================

class TestSecretRegistrySource:

    def test_reads_registries(self):
        source = _source_for(
            _docker_secret("pull-secret", {
                "reg-a.example.com": {"username": "a", "password": "pa"},
                "reg-b.example.com": {"username": "b", "password": "pb"},
            }),
        )

        registries = source.list_registries("monitoring")

        assert set(registries) == {"reg-a.example.com", "reg-b.example.com"}
        assert registries["reg-a.example.com"].name == "pull-secret"
        assert registries["reg-a.example.com"].username == "a"
        assert registries["reg-b.example.com"].password == "pb"

    def test_queries_requested_namespace(self):
        source = _source_for()
        source.list_registries("registries")
        source._api.list_namespaced_secret.assert_called_once_with("registries")

    def test_first_seen_wins_on_duplicate_url(self):
        source = _source_for(
            _docker_secret("first", {"reg.example.com": {"username": "u1", "password": "p1"}}),
            _docker_secret("second", {"reg.example.com": {"username": "u2", "password": "p2"}}),
        )

        registries = source.list_registries("monitoring")

        assert len(registries) == 1
        assert registries["reg.example.com"].name == "first"
        assert registries["reg.example.com"].username == "u1"

    def test_legacy_dockercfg(self):
        source = _source_for(
            _docker_secret(
                "legacy",
                {"old.example.com": {"auth": _b64("u:p")}},
                key=".dockercfg",
            ),
        )
        registry = source.list_registries("monitoring")["old.example.com"]
        assert (registry.username, registry.password) == ("u", "p")

    def test_non_docker_secrets_ignored(self):
        opaque = client.V1Secret(
            metadata=client.V1ObjectMeta(name="tls"),
            data={"tls.crt": _b64("cert")},
        )
        empty = client.V1Secret(metadata=client.V1ObjectMeta(name="empty"), data=None)
        assert _source_for(opaque, empty).list_registries("monitoring") == {}

    def test_malformed_secret_skipped(self):
        broken = client.V1Secret(
            metadata=client.V1ObjectMeta(name="broken"),
            data={".dockerconfigjson": _b64("{not json")},
        )
        good = _docker_secret("good", {"reg.example.com": {"username": "u", "password": "p"}})

        registries = _source_for(broken, good).list_registries("monitoring")

        assert list(registries) == ["reg.example.com"]

    def test_malformed_entry_skipped(self):
        source = _source_for(
            _docker_secret("mixed", {
                "bad.example.com": {"email": "nobody@example.com"},
                "good.example.com": {"username": "u", "password": "p"},
                "": {"username": "u", "password": "p"},
            }),
        )
        assert list(source.list_registries("monitoring")) == ["good.example.com"]

    def test_list_failure_raises(self):
        core_api = MagicMock()
        core_api.list_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")
        source = SecretRegistrySource(core_api)

        with pytest.raises(RegistrySourceError, match="403"):
            source.list_registries("monitoring")

    def test_unreachable_api_raises(self):
        core_api = MagicMock()
        core_api.list_namespaced_secret.side_effect = MaxRetryError(None, "/api", "refused")
        source = SecretRegistrySource(core_api)

        with pytest.raises(RegistrySourceError, match="unreachable"):
            source.list_registries("monitoring")


# ============================================================================
# POD IDENTITY
# ============================================================================

class TestPodIdentityResolver:

    def test_matches_local_address(self):
        resolver = _resolver_for(
            [_pod("monitor-0", "10.0.0.5"), _pod("monitor-1", "10.0.0.6")],
            local={"127.0.0.1", "10.0.0.6"},
        )

        identity = resolver.resolve_self_identity("monitoring", "app=registry-monitor")

        assert identity.address == "10.0.0.6"
        assert identity.pod_name == "monitor-1"
        assert identity.namespace == "monitoring"
        resolver._api.list_namespaced_pod.assert_called_once_with(
            "monitoring", label_selector="app=registry-monitor"
        )

    def test_matches_secondary_pod_ip(self):
        resolver = _resolver_for(
            [_pod("monitor-0", "10.0.0.5", extra_ips=["fd00::5"])],
            local={"fd00::5"},
        )
        assert resolver.resolve_self_identity("monitoring", "app=m").address == "fd00::5"

    def test_hostname_breaks_tie(self):
        resolver = _resolver_for(
            [_pod("monitor-0", "10.0.0.5"), _pod("monitor-1", "10.0.0.5")],
            local={"10.0.0.5"},
            hostname="monitor-1",
        )
        assert resolver.resolve_self_identity("monitoring", "app=m").pod_name == "monitor-1"

    def test_no_match_raises(self):
        resolver = _resolver_for([_pod("monitor-0", "10.0.0.5")], local={"10.9.9.9"})
        with pytest.raises(IdentityResolutionError):
            resolver.resolve_self_identity("monitoring", "app=m")

    def test_no_local_addresses_raises(self):
        resolver = _resolver_for([_pod("monitor-0", "10.0.0.5")], local=set())
        with pytest.raises(IdentityResolutionError):
            resolver.resolve_self_identity("monitoring", "app=m")

    def test_list_failure_raises(self):
        core_api = MagicMock()
        core_api.list_namespaced_pod.side_effect = ApiException(status=500, reason="Boom")
        resolver = PodIdentityResolver(core_api, address_provider=lambda: {"10.0.0.5"})

        with pytest.raises(IdentityResolutionError):
            resolver.resolve_self_identity("monitoring", "app=m")

    def test_unreachable_api_raises(self):
        core_api = MagicMock()
        core_api.list_namespaced_pod.side_effect = MaxRetryError(None, "/api", "refused")
        resolver = PodIdentityResolver(core_api, address_provider=lambda: {"10.0.0.5"})

        with pytest.raises(IdentityResolutionError, match="unreachable"):
            resolver.resolve_self_identity("monitoring", "app=m")


# ============================================================================
# CLUSTER ACCESS
# ============================================================================

class TestCreateCoreApi:

    def test_in_cluster_config(self):
        with patch("infrastructure.kubernetes.config") as config_mock:
            api = create_core_api()
        config_mock.load_incluster_config.assert_called_once()
        config_mock.load_kube_config.assert_not_called()
        assert isinstance(api, client.CoreV1Api)

    def test_falls_back_to_kubeconfig(self):
        with patch("infrastructure.kubernetes.config") as config_mock:
            config_mock.load_incluster_config.side_effect = ConfigException("not in cluster")
            create_core_api("/tmp/kubeconfig")
        config_mock.load_kube_config.assert_called_once_with(config_file="/tmp/kubeconfig")

    def test_no_configuration_raises(self):
        with patch("infrastructure.kubernetes.config") as config_mock:
            config_mock.load_incluster_config.side_effect = ConfigException("not in cluster")
            config_mock.load_kube_config.side_effect = ConfigException("no kubeconfig")
            with pytest.raises(ClusterAccessError):
                create_core_api()
