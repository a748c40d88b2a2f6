# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Reconciliation loop
# PURPOSE: Converge running checkers to the discovered registry set
# CREATED: 17 OCT 2026
# ============================================================================
"""
Orchestrator Module

The reconciliation loop that owns the live-checker map.

Usage:
    from orchestrator import Reconciler

    reconciler = Reconciler(source, prober, stream, namespace="monitoring")
    await reconciler.run()  # Runs until stop()
"""

from .loop import Reconciler, ReconcileSummary

__all__ = ["Reconciler", "ReconcileSummary"]
