# ============================================================================
# HEALTH CHECK COMPONENT REFERENCES
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Wiring for health checks
# PURPOSE: Hold references to the running components (set by the main app)
# CREATED: 17 OCT 2026
# ============================================================================

config = None
core_api = None
reconciler = None
sink = None


def set_components(config=None, core_api=None, reconciler=None, sink=None):
    """Set component references for health checks."""
    globals().update(
        config=config,
        core_api=core_api,
        reconciler=reconciler,
        sink=sink,
    )
