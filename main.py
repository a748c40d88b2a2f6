# ============================================================================
# REGISTRY MONITOR - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Main application with the reconciliation loop and result sink
# CREATED: 17 OCT 2026
# ============================================================================
"""
Registry Monitor Main Application

FastAPI application that:
1. Runs the reconciler, which keeps one checker per registry found in the
   namespace's dockerconfigjson secrets
2. Drains check results to stdout as JSON lines
3. Serves Kubernetes probes and a read-only status API

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000

Headless (no HTTP server):
    HEADLESS=true python main.py
"""

import asyncio
import os
import signal
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import MonitorConfig, get_config
from core.contracts import RegistryMonitorError
from infrastructure import PodIdentityResolver, SecretRegistrySource, create_core_api
from messaging import ResultSink, ResultStream
from orchestrator import Reconciler
from worker import RegistryProber
from api.routes import router, set_services

# Health check system
from health import health_router, get_registry

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


# ============================================================================
# MONITOR ASSEMBLY
# ============================================================================

class Monitor:
    """Wires the reconciler, prober, stream and sink from configuration."""

    def __init__(self, config: MonitorConfig, core_api=None):
        self.config = config
        self.core_api = core_api or create_core_api(config.discovery.kubeconfig)

        self.prober = RegistryProber(
            timeout=config.probe.timeout,
            insecure_tls=config.probe.insecure_tls,
            catalog_path=config.probe.catalog_path,
        )
        self.stream = ResultStream(maxsize=config.stream.buffer_size)
        self.sink = ResultSink(self.stream)
        self.reconciler = Reconciler(
            source=SecretRegistrySource(self.core_api),
            prober=self.prober,
            stream=self.stream,
            namespace=config.discovery.namespace,
            refresh_interval=config.discovery.refresh_interval,
            check_interval=config.discovery.check_interval,
            identity_resolver=PodIdentityResolver(self.core_api),
            discovery_hint=config.discovery.discovery_hint,
            rotation_policy=config.discovery.rotation_policy,
            shutdown_timeout=config.discovery.shutdown_timeout,
            on_reconciled=self.sink.prune,
        )

    async def start(self) -> None:
        """
        Start the sink, then the reconciler.

        Raises:
            IdentityResolutionError: If source tagging is enabled and this
                pod cannot be found
        """
        self.sink.start()
        try:
            await self.reconciler.start()
        except Exception:
            await self.sink.stop()
            await self.prober.close()
            raise

    async def stop(self) -> None:
        """Stop checkers first so the sink sees their last results."""
        await self.reconciler.stop()
        await self.sink.stop()
        await self.prober.close()


# Global instance
_monitor: Monitor = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes the monitor on startup, stops it on shutdown. Cluster access
    and identity errors propagate, so uvicorn exits non-zero.
    """
    global _monitor

    logger.info(f"Starting Registry Monitor v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    config = get_config()
    _monitor = Monitor(config)
    await _monitor.start()
    logger.info("Reconciler started")

    # Set services for API routes
    set_services(reconciler=_monitor.reconciler, sink=_monitor.sink, config=config)

    # Initialize health checks
    import health.checks  # Register all health check plugins
    health.checks.set_components(
        config=config,
        core_api=_monitor.core_api,
        reconciler=_monitor.reconciler,
        sink=_monitor.sink,
    )
    get_registry().mark_initialized()
    logger.info(f"Health checks initialized ({len(get_registry())} checks registered)")

    yield

    # Shutdown
    logger.info("Shutting down Registry Monitor...")
    await _monitor.stop()
    logger.info("Registry Monitor stopped")


# Create FastAPI app
app = FastAPI(
    title="Registry Monitor",
    description=f"Epoch {EPOCH} container registry health monitor",
    version=__version__,
    lifespan=lifespan,
)

# Include health check routes (no prefix - /livez, /readyz, /health)
app.include_router(health_router)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Registry Monitor",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# HEADLESS ENTRY POINT
# ============================================================================

async def run_headless() -> None:
    """Run the monitor without the HTTP server until SIGINT or SIGTERM."""
    logger.info(f"Registry Monitor v{__version__} starting (headless)")

    config = get_config()
    monitor = Monitor(config)
    await monitor.start()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        await monitor.stop()

    logger.info("Registry Monitor stopped")


def run() -> None:
    """Synchronous headless entry point."""
    try:
        asyncio.run(run_headless())
    except (RegistryMonitorError, ValueError) as e:
        logger.error(f"Registry Monitor failed to start: {e}")
        sys.exit(1)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    if os.environ.get("HEADLESS", "false").lower() == "true":
        run()
    else:
        import uvicorn

        host = os.environ.get("HOST", "0.0.0.0")
        port = int(os.environ.get("PORT", "8000"))

        uvicorn.run(
            "main:app",
            host=host,
            port=port,
            reload=os.environ.get("RELOAD", "false").lower() == "true",
        )
