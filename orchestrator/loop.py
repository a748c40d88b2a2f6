# ============================================================================
# RECONCILIATION LOOP
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Desired-set reconciliation
# PURPOSE: Keep one running checker per discovered registry
# CREATED: 17 OCT 2026
# ============================================================================
"""
Reconciliation Loop

The reconciler periodically re-reads the desired registry set and converges
the running checkers to it:

1. Resolve this pod's identity once (only if source tagging is enabled;
   failure is fatal)
2. Loop:
   a. Read the desired set (URL -> Registry). On error: log, keep every
      running checker, wait for the next cycle
   b. Start phase: start a checker for every desired URL not yet live
   c. Stop phase: stop and forget every live checker whose URL vanished
   d. Sleep refresh_interval

The live-checker map is private to this class and only mutated from its
own (single) task, so it needs no locking. Checkers never see it.

Credential rotation:
- RotationPolicy.URL (default): the diff is on URL only. A password change
  under an unchanged URL keeps the old checker with its old credentials.
- RotationPolicy.CREDENTIALS: a changed credentials fingerprint replaces
  the checker in the same pass.

A checker (re)started for a URL whose stopped predecessor is still finishing
its last cycle waits for it, so one URL is never probed twice at once.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from core.contracts import RotationPolicy
from core.logging import ComponentType, get_logger, log_checkpoint
from core.models import Registry, SourceIdentity
from messaging.stream import ResultStream
from worker.checker import RegistryChecker
from worker.prober import Prober

logger = get_logger(__name__, ComponentType.RECONCILER)


@dataclass
class ReconcileSummary:
    """What one reconciliation pass changed."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    replaced: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.replaced)


class Reconciler:
    """
    Control loop that owns the live-checker map.

    Collaborators:
        source: object with list_registries(namespace) -> Dict[str, Registry]
                (blocking; run in the default executor)
        identity_resolver: object with
                resolve_self_identity(namespace, discovery_hint) -> SourceIdentity
    """

    def __init__(
        self,
        source: Any,
        prober: Prober,
        stream: ResultStream,
        namespace: str,
        refresh_interval: float = 30.0,
        check_interval: float = 3.0,
        identity_resolver: Optional[Any] = None,
        discovery_hint: Optional[str] = None,
        rotation_policy: RotationPolicy = RotationPolicy.URL,
        shutdown_timeout: float = 30.0,
        on_reconciled: Optional[Callable[[FrozenSet[str]], None]] = None,
    ):
        """
        Initialize reconciler.

        Args:
            source: Desired registry set source
            prober: Prober shared by all checkers
            stream: Shared result stream
            namespace: Namespace to query
            refresh_interval: Seconds between desired-set refreshes
            check_interval: Seconds between probes of one registry
            identity_resolver: Optional self identity resolver
            discovery_hint: Label selector for identity resolution
                (tagging is enabled only when both are set)
            rotation_policy: Reaction to rotated credentials
            shutdown_timeout: Seconds to wait for checkers on stop()
            on_reconciled: Called with the live URL set after every
                successful refresh
        """
        self.source = source
        self.prober = prober
        self.stream = stream
        self.namespace = namespace
        self.refresh_interval = refresh_interval
        self.check_interval = check_interval
        self.identity_resolver = identity_resolver
        self.discovery_hint = discovery_hint
        self.rotation_policy = rotation_policy
        self.shutdown_timeout = shutdown_timeout
        self.on_reconciled = on_reconciled

        # Live-checker map, keyed by registry URL
        self._checkers: Dict[str, RegistryChecker] = {}
        # Tasks of stopped checkers still finishing their last cycle
        self._retiring: Dict[str, "asyncio.Task[None]"] = {}

        self._identity: Optional[SourceIdentity] = None

        # State
        self._running = False
        self._stop_event = asyncio.Event()
        self._loop_task: Optional["asyncio.Task[None]"] = None

        # Metrics
        self._started_at: Optional[datetime] = None
        self._cycles = 0
        self._refresh_failures = 0
        self._consecutive_failures = 0
        self._checkers_started = 0
        self._checkers_stopped = 0
        self._last_refresh_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def identity(self) -> Optional[SourceIdentity]:
        """Identity results are tagged with (None when tagging is off)."""
        return self._identity

    @property
    def identity_enabled(self) -> bool:
        return self.identity_resolver is not None and bool(self.discovery_hint)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def run(self) -> None:
        """
        Resolve identity, then reconcile until stop() is called.

        Raises:
            IdentityResolutionError: If tagging is enabled and this pod's
                identity cannot be resolved
        """
        await self._prepare()
        try:
            await self._loop()
        finally:
            await self._stop_all_checkers()

    async def start(self) -> None:
        """
        Resolve identity and run the loop as a background task.

        Identity failures propagate to the caller before anything starts.
        """
        if self._running:
            logger.warning("Reconciler already running")
            return

        await self._prepare()
        self._loop_task = asyncio.create_task(self._loop(), name="reconciler")

    async def stop(self) -> None:
        """Stop the loop and every checker, waiting up to shutdown_timeout."""
        logger.info("Stopping reconciler")
        self._running = False
        self._stop_event.set()

        if self._loop_task is not None:
            await asyncio.wait({self._loop_task})
            self._loop_task = None

        await self._stop_all_checkers()
        logger.info(
            f"Reconciler stopped. Stats: cycles={self._cycles}, "
            f"started={self._checkers_started}, stopped={self._checkers_stopped}"
        )

    async def _prepare(self) -> None:
        self._identity = await self._resolve_identity()
        self._running = True
        self._stop_event.clear()
        self._started_at = datetime.now(timezone.utc)
        logger.info(
            f"Reconciler starting: namespace={self.namespace}, "
            f"refresh={self.refresh_interval}s, check={self.check_interval}s, "
            f"rotation={self.rotation_policy.value}, "
            f"source={self._identity or 'untagged'}"
        )

    async def _resolve_identity(self) -> Optional[SourceIdentity]:
        if not self.identity_enabled:
            return None

        loop = asyncio.get_running_loop()
        identity = await loop.run_in_executor(
            None,
            self.identity_resolver.resolve_self_identity,
            self.namespace,
            self.discovery_hint,
        )
        logger.info(f"Resolved self identity: {identity}")
        return identity

    async def _loop(self) -> None:
        """Main reconciliation loop."""
        while self._running and not self._stop_event.is_set():
            try:
                await self.refresh()
            except asyncio.CancelledError:
                break
            except Exception as e:
                # reconcile() bugs must not kill the loop either
                self._last_error = str(e)
                logger.exception(f"Error in reconciliation cycle: {e}")

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.refresh_interval,
                )
                break  # Stop event was set
            except asyncio.TimeoutError:
                pass

        logger.info("Reconciliation loop stopped")

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    async def refresh(self) -> bool:
        """
        One reconciliation cycle without the sleep.

        Returns:
            True if the desired set was read and applied, False if the
            read failed and the live set was left untouched
        """
        loop = asyncio.get_running_loop()
        try:
            desired = await loop.run_in_executor(
                None,
                self.source.list_registries,
                self.namespace,
            )
        except Exception as e:
            self._refresh_failures += 1
            self._consecutive_failures += 1
            self._last_error = str(e)
            logger.warning(
                f"Failed to read registry set, keeping {len(self._checkers)} "
                f"checker(s) unchanged: {e}"
            )
            log_checkpoint("refresh_failed", {"error": str(e)})
            return False

        self._cycles += 1
        self._consecutive_failures = 0
        self._last_refresh_at = datetime.now(timezone.utc)

        summary = self.reconcile(desired)
        if summary.changed:
            logger.info(
                f"Reconciled {len(self._checkers)} registries: "
                f"added={len(summary.added)}, removed={len(summary.removed)}, "
                f"replaced={len(summary.replaced)}"
            )
        if self.on_reconciled is not None:
            self.on_reconciled(self.live_urls())
        return True

    def reconcile(self, desired: Mapping[str, Registry]) -> ReconcileSummary:
        """
        Converge the live checkers to a desired set.

        Start phase runs before stop phase. Must be called from the
        event loop thread.

        Args:
            desired: Registry URL -> Registry

        Returns:
            Summary of the changes made
        """
        summary = ReconcileSummary()
        self._reap_retired()

        if self.rotation_policy == RotationPolicy.CREDENTIALS:
            for url, checker in list(self._checkers.items()):
                registry = desired.get(url)
                if (
                    registry is not None
                    and registry.credentials_fingerprint
                    != checker.registry.credentials_fingerprint
                ):
                    summary.replaced.append(url)

        # Start phase
        for url, registry in desired.items():
            if url not in self._checkers:
                self._start_checker(registry)
                summary.added.append(url)

        for url in summary.replaced:
            logger.info(f"credentials rotated for registry {url}, restarting check")
            self._stop_checker(url)
            self._start_checker(desired[url])

        # Stop phase
        for url in list(self._checkers):
            if url not in desired:
                self._stop_checker(url)
                summary.removed.append(url)

        return summary

    def _start_checker(self, registry: Registry) -> RegistryChecker:
        predecessor = self._retiring.get(registry.url)
        if predecessor is not None and predecessor.done():
            predecessor = None

        checker = RegistryChecker(
            registry=registry,
            check_interval=self.check_interval,
            stream=self.stream,
            prober=self.prober,
            source=self._identity,
            predecessor=predecessor,
        )
        checker.start()
        self._checkers[registry.url] = checker
        self._checkers_started += 1

        logger.info(f"added registry check: {registry.describe()}")
        return checker

    def _stop_checker(self, url: str) -> RegistryChecker:
        checker = self._checkers.pop(url)
        checker.stop()
        self._checkers_stopped += 1

        if checker.task is not None and not checker.task.done():
            self._retiring[url] = checker.task

        logger.info(f"deleted registry check: {url}")
        return checker

    def _reap_retired(self) -> None:
        for url in [u for u, task in self._retiring.items() if task.done()]:
            del self._retiring[url]

    async def _stop_all_checkers(self) -> None:
        """Stop every checker and wait for their tasks (shutdown only)."""
        for url in list(self._checkers):
            self._stop_checker(url)

        tasks = [task for task in self._retiring.values() if not task.done()]
        if tasks:
            logger.info(f"Waiting for {len(tasks)} checker(s) to finish...")
            _, pending = await asyncio.wait(tasks, timeout=self.shutdown_timeout)
            if pending:
                logger.warning(
                    f"Shutdown timeout - cancelling {len(pending)} checker(s)"
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        self._retiring.clear()

    # =========================================================================
    # STATS AND PROPERTIES
    # =========================================================================

    def live_urls(self) -> FrozenSet[str]:
        """Snapshot of the URLs with a live checker."""
        return frozenset(self._checkers)

    def checker_snapshots(self) -> List[Dict[str, Any]]:
        """Read-only per-checker status, sorted by URL."""
        return [self._checkers[url].to_dict() for url in sorted(self._checkers)]

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_refresh_at(self) -> Optional[datetime]:
        return self._last_refresh_at

    @property
    def stats(self) -> Dict[str, Any]:
        """Get reconciler statistics."""
        uptime_seconds = None
        if self._started_at:
            uptime_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self._running,
            "namespace": self.namespace,
            "identity": self._identity.model_dump() if self._identity else None,
            "rotation_policy": self.rotation_policy.value,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime_seconds,
            "refresh_interval": self.refresh_interval,
            "check_interval": self.check_interval,
            "cycles": self._cycles,
            "refresh_failures": self._refresh_failures,
            "consecutive_failures": self._consecutive_failures,
            "last_refresh_at": self._last_refresh_at.isoformat() if self._last_refresh_at else None,
            "last_error": self._last_error,
            "live_checkers": len(self._checkers),
            "retiring_checkers": len(self._retiring),
            "checkers_started": self._checkers_started,
            "checkers_stopped": self._checkers_stopped,
        }


__all__ = ["Reconciler", "ReconcileSummary"]
