# ============================================================================
# MESSAGING MODULE
# ============================================================================
# EPOCH: 1 - REGISTRY MONITORING
# STATUS: Core - Result stream and sink
# PURPOSE: Many-producer / one-consumer result aggregation
# CREATED: 17 OCT 2026
# ============================================================================
"""
Messaging Module

Result aggregation between checkers and the output:
- ResultStream: bounded queue shared by all checkers
- ResultSink: single consumer rendering results as JSON lines

Usage:
    from messaging import ResultStream, ResultSink

    stream = ResultStream(maxsize=100)
    sink = ResultSink(stream)
    sink.start()
"""

from messaging.stream import ResultStream
from messaging.sink import ResultRenderer, JsonLineRenderer, ResultSink

__all__ = [
    "ResultStream",
    "ResultRenderer",
    "JsonLineRenderer",
    "ResultSink",
]
