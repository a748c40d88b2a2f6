# ============================================================================
# RECONCILER TESTS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Tests - Desired-set reconciliation
# PURPOSE: Verify convergence, fail-soft refresh and rotation handling
# CREATED: 17 OCT 2026
# ============================================================================
"""
Reconciler Tests

Covers:
1. Live set converges to the desired set after every pass
2. Unchanged registries keep their checker (A,B -> B,C)
3. Source failures leave the live set untouched
4. Rotation policy: URL keeps the checker, CREDENTIALS replaces it
5. A URL is never probed by two checkers at once
6. start()/stop() lifecycle and identity resolution

Run with:
    pytest tests/test_reconciler.py -v
"""

import asyncio
import pytest
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List
from unittest.mock import MagicMock

from core.contracts import (
    CheckerState,
    IdentityResolutionError,
    RegistrySourceError,
    RotationPolicy,
)
from core.models import CheckResult, Registry, SourceIdentity
from messaging.sink import ResultRenderer, ResultSink
from messaging.stream import ResultStream
from orchestrator.loop import Reconciler
from worker.prober import Prober


# ============================================================================
# FIXTURES
# ============================================================================

class OverlapTrackingProber(Prober):
    """Prober that records how many probes per URL run at once."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.active: Dict[str, int] = defaultdict(int)
        self.max_active: Dict[str, int] = defaultdict(int)
        self.calls: List[tuple] = []

    async def probe(self, url: str, username: str, password: str) -> CheckResult:
        self.calls.append((url, username, password))
        self.active[url] += 1
        self.max_active[url] = max(self.max_active[url], self.active[url])
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return CheckResult.ok(url, "{}")
        finally:
            self.active[url] -= 1


class RecordingRenderer(ResultRenderer):
    """Keeps every rendered result in memory."""

    def __init__(self):
        self.results: List[CheckResult] = []

    def render(self, result: CheckResult) -> None:
        self.results.append(result)

    def for_url(self, url: str, after: datetime = None) -> List[CheckResult]:
        return [
            r for r in self.results
            if r.url == url and (after is None or r.checked_at > after)
        ]


def _registries(*urls, password="p") -> Dict[str, Registry]:
    return {
        url: Registry(name=f"secret-{url}", url=url, username="u", password=password)
        for url in urls
    }


def _reconciler(source=None, prober=None, **kwargs) -> Reconciler:
    kwargs.setdefault("check_interval", 0.01)
    kwargs.setdefault("refresh_interval", 0.05)
    kwargs.setdefault("shutdown_timeout", 1.0)
    return Reconciler(
        source=source or MagicMock(),
        prober=prober or OverlapTrackingProber(),
        stream=ResultStream(maxsize=10000),
        namespace="monitoring",
        **kwargs,
    )


# ============================================================================
# RECONCILE PASS
# ============================================================================

class TestReconcile:

    def test_converges_to_every_desired_set(self):
        sequence = [
            ("a", "b"),
            ("b", "c"),
            (),
            ("a", "b", "c", "d"),
            ("d",),
            ("d",),
        ]

        async def run():
            reconciler = _reconciler()
            observed = []
            for urls in sequence:
                reconciler.reconcile(_registries(*urls))
                observed.append(reconciler.live_urls())
            await reconciler.stop()
            return observed

        observed = asyncio.run(run())

        assert observed == [frozenset(urls) for urls in sequence]

    def test_unchanged_registry_keeps_checker(self):
        async def run():
            reconciler = _reconciler()
            first = reconciler.reconcile(_registries("a", "b"))
            checker_a = reconciler._checkers["a"]
            checker_b = reconciler._checkers["b"]

            second = reconciler.reconcile(_registries("b", "c"))

            assert reconciler._checkers["b"] is checker_b
            assert checker_a.stop_requested
            assert not checker_b.stop_requested
            await reconciler.stop()
            return first, second

        first, second = asyncio.run(run())

        assert sorted(first.added) == ["a", "b"]
        assert first.removed == []
        assert second.added == ["c"]
        assert second.removed == ["a"]

    def test_swap_seen_on_result_stream(self):
        renderer = RecordingRenderer()

        async def run():
            reconciler = _reconciler()
            sink = ResultSink(reconciler.stream, renderer=renderer)
            sink.start()

            reconciler.reconcile(_registries("a", "b"))
            checker_a = reconciler._checkers["a"]
            checker_b = reconciler._checkers["b"]
            await asyncio.sleep(0.05)

            swapped_at = datetime.now(timezone.utc)
            reconciler.reconcile(_registries("b", "c"))
            assert await checker_a.wait(timeout=0.5)
            a_done_at = datetime.now(timezone.utc)
            await asyncio.sleep(0.05)

            same_b = reconciler._checkers["b"] is checker_b
            await reconciler.stop()
            while reconciler.stream.qsize():
                await asyncio.sleep(0.001)
            await sink.stop()
            return swapped_at, a_done_at, same_b

        swapped_at, a_done_at, same_b = asyncio.run(run())

        assert renderer.for_url("a")
        assert len(renderer.for_url("a", after=swapped_at)) <= 1
        assert renderer.for_url("a", after=a_done_at) == []
        assert renderer.for_url("c", after=swapped_at)
        assert renderer.for_url("b", after=a_done_at)
        assert same_b

    def test_repeated_pass_is_noop(self):
        async def run():
            reconciler = _reconciler()
            reconciler.reconcile(_registries("a"))
            summary = reconciler.reconcile(_registries("a"))
            started = reconciler.stats["checkers_started"]
            await reconciler.stop()
            return summary, started

        summary, started = asyncio.run(run())

        assert not summary.changed
        assert started == 1

    def test_url_policy_keeps_old_credentials(self):
        async def run():
            reconciler = _reconciler(rotation_policy=RotationPolicy.URL)
            reconciler.reconcile(_registries("a", password="old"))
            checker = reconciler._checkers["a"]

            summary = reconciler.reconcile(_registries("a", password="new"))

            kept = reconciler._checkers["a"] is checker
            password = reconciler._checkers["a"].registry.password
            await reconciler.stop()
            return summary, kept, password

        summary, kept, password = asyncio.run(run())

        assert not summary.changed
        assert kept
        assert password == "old"

    def test_credentials_policy_replaces_checker(self):
        async def run():
            prober = OverlapTrackingProber(delay=0.01)
            reconciler = _reconciler(prober=prober, rotation_policy=RotationPolicy.CREDENTIALS)
            reconciler.reconcile(_registries("a", password="old"))
            old_checker = reconciler._checkers["a"]
            await asyncio.sleep(0.005)

            summary = reconciler.reconcile(_registries("a", password="new"))
            new_checker = reconciler._checkers["a"]
            await asyncio.sleep(0.05)
            await reconciler.stop()
            return prober, summary, old_checker, new_checker

        prober, summary, old_checker, new_checker = asyncio.run(run())

        assert summary.replaced == ["a"]
        assert old_checker is not new_checker
        assert old_checker.state == CheckerState.STOPPED
        assert new_checker.registry.password == "new"
        assert ("a", "u", "new") in prober.calls
        assert prober.max_active["a"] == 1

    def test_readded_url_never_overlaps(self):
        async def run():
            prober = OverlapTrackingProber(delay=0.02)
            reconciler = _reconciler(prober=prober, check_interval=0.001)
            reconciler.reconcile(_registries("a"))
            await asyncio.sleep(0.005)

            # Remove and re-add while the first probe is still in flight
            reconciler.reconcile({})
            reconciler.reconcile(_registries("a"))
            assert reconciler.live_urls() == frozenset({"a"})

            await asyncio.sleep(0.1)
            await reconciler.stop()
            return prober

        prober = asyncio.run(run())

        assert prober.max_active["a"] == 1
        assert len(prober.calls) >= 2

    def test_removed_checker_stops_within_one_cycle(self):
        async def run():
            reconciler = _reconciler()
            reconciler.reconcile(_registries("a"))
            checker = reconciler._checkers["a"]
            await asyncio.sleep(0.02)

            reconciler.reconcile({})
            finished = await checker.wait(timeout=0.5)
            await reconciler.stop()
            return finished, checker

        finished, checker = asyncio.run(run())

        assert finished
        assert checker.state == CheckerState.STOPPED


# ============================================================================
# REFRESH
# ============================================================================

class TestRefresh:

    def test_source_failure_keeps_live_set(self):
        source = MagicMock()
        source.list_registries.return_value = _registries("a", "b")

        async def run():
            reconciler = _reconciler(source=source)
            assert await reconciler.refresh()

            source.list_registries.side_effect = RegistrySourceError("apiserver down")
            ok = await reconciler.refresh()
            live = reconciler.live_urls()
            stats = reconciler.stats
            await reconciler.stop()
            return ok, live, stats

        ok, live, stats = asyncio.run(run())

        assert ok is False
        assert live == frozenset({"a", "b"})
        assert stats["refresh_failures"] == 1
        assert stats["cycles"] == 1
        assert stats["last_error"] == "apiserver down"
        source.list_registries.assert_called_with("monitoring")

    def test_live_set_reported_after_successful_refresh(self):
        source = MagicMock()
        reported = []

        async def run():
            reconciler = _reconciler(source=source, on_reconciled=reported.append)
            source.list_registries.return_value = _registries("a", "b")
            await reconciler.refresh()
            source.list_registries.return_value = _registries("b")
            await reconciler.refresh()
            source.list_registries.side_effect = RegistrySourceError("apiserver down")
            await reconciler.refresh()
            await reconciler.stop()

        asyncio.run(run())

        assert reported == [frozenset({"a", "b"}), frozenset({"b"})]


# ============================================================================
# LIFECYCLE
# ============================================================================

class TestLifecycle:

    def test_start_and_stop(self):
        source = MagicMock()
        source.list_registries.return_value = _registries("a", "b")

        async def run():
            reconciler = _reconciler(source=source)
            await reconciler.start()
            await asyncio.sleep(0.05)
            live = reconciler.live_urls()
            checkers = list(reconciler._checkers.values())
            running = reconciler.is_running

            await reconciler.stop()
            return live, checkers, running, reconciler

        live, checkers, running, reconciler = asyncio.run(run())

        assert running
        assert live == frozenset({"a", "b"})
        assert all(c.state == CheckerState.STOPPED for c in checkers)
        assert reconciler.live_urls() == frozenset()
        assert not reconciler.is_running

    def test_loop_survives_source_failures(self):
        source = MagicMock()
        source.list_registries.side_effect = RegistrySourceError("forbidden")

        async def run():
            reconciler = _reconciler(source=source, refresh_interval=0.01)
            await reconciler.start()
            await asyncio.sleep(0.05)
            running = reconciler.is_running
            failures = reconciler.stats["refresh_failures"]
            await reconciler.stop()
            return running, failures

        running, failures = asyncio.run(run())

        assert running
        assert failures >= 2

    def test_identity_failure_propagates_from_start(self):
        resolver = MagicMock()
        resolver.resolve_self_identity.side_effect = IdentityResolutionError("no pod")
        source = MagicMock()

        async def run():
            reconciler = _reconciler(
                source=source,
                identity_resolver=resolver,
                discovery_hint="app=registry-monitor",
            )
            await reconciler.start()

        with pytest.raises(IdentityResolutionError):
            asyncio.run(run())
        source.list_registries.assert_not_called()

    def test_identity_skipped_without_hint(self):
        resolver = MagicMock()

        async def run():
            reconciler = _reconciler(identity_resolver=resolver, discovery_hint=None)
            reconciler.source.list_registries.return_value = {}
            await reconciler.start()
            await reconciler.stop()
            return reconciler

        reconciler = asyncio.run(run())

        resolver.resolve_self_identity.assert_not_called()
        assert reconciler.identity is None

    def test_results_tagged_with_resolved_identity(self):
        identity = SourceIdentity(address="10.0.0.7", pod_name="monitor-0", namespace="monitoring")
        resolver = MagicMock()
        resolver.resolve_self_identity.return_value = identity
        source = MagicMock()
        source.list_registries.return_value = _registries("a")

        async def run():
            reconciler = _reconciler(
                source=source,
                identity_resolver=resolver,
                discovery_hint="app=registry-monitor",
            )
            await reconciler.start()
            result = await asyncio.wait_for(reconciler.stream.get(), timeout=1.0)
            await reconciler.stop()
            return result

        result = asyncio.run(run())

        resolver.resolve_self_identity.assert_called_once_with("monitoring", "app=registry-monitor")
        assert result.source == identity
        assert result.to_dict()["source"] == "10.0.0.7"

    def test_snapshots_exclude_passwords(self):
        async def run():
            reconciler = _reconciler()
            reconciler.reconcile(_registries("b", "a", password="hunter2"))
            snapshots = reconciler.checker_snapshots()
            await reconciler.stop()
            return snapshots

        snapshots = asyncio.run(run())

        assert [s["url"] for s in snapshots] == ["a", "b"]
        assert all("hunter2" not in str(s) for s in snapshots)
