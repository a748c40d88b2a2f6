# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Self checks for the registry monitor components
# CREATED: 17 OCT 2026
# ============================================================================
"""
Health Check Plugins

Startup Checks (priority 10):
- process: Basic process health (always healthy if running)
- config: Effective configuration loaded

Infrastructure Checks (priority 20):
- kubernetes: Secrets in the monitored namespace readable (not required
  for readiness)

Application Checks (priority 40):
- reconciler: Loop running, desired set refreshed recently
- result_sink: Results being drained

Import this module to register all checks, then wire components:
    import health.checks
    health.checks.set_components(config, core_api, reconciler, sink)
"""

from health.checks.components import set_components
from health.checks.startup import ProcessCheck, ConfigCheck
from health.checks.infrastructure import KubernetesCheck
from health.checks.application import ReconcilerCheck, ResultSinkCheck

__all__ = [
    "set_components",
    # Startup
    "ProcessCheck",
    "ConfigCheck",
    # Infrastructure
    "KubernetesCheck",
    # Application
    "ReconcilerCheck",
    "ResultSinkCheck",
]
