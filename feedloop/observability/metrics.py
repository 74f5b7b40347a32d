"""Prometheus metrics for feedloop.

Conversation lifecycle, decision outcomes, scheduler outcomes and
background workflow health.
"""

from prometheus_client import Counter, Histogram, start_http_server

# Conversation metrics
CONVERSATIONS_INITIATED = Counter(
    "feedloop_conversations_initiated_total",
    "Total conversations initiated",
    labelnames=["interaction_type"],
)

CONVERSATIONS_CLOSED = Counter(
    "feedloop_conversations_closed_total",
    "Total conversations closed",
    labelnames=["interaction_type"],
)

DECISIONS = Counter(
    "feedloop_decisions_total",
    "Next-action decisions by outcome and source",
    labelnames=["decision", "source"],
)

LLM_FALLBACKS = Counter(
    "feedloop_llm_fallbacks_total",
    "Canned output used because the completion service was unavailable",
    labelnames=["component"],
)

# Scheduler metrics
SCHEDULER_OUTCOMES = Counter(
    "feedloop_scheduler_outcomes_total",
    "Per-user scheduling outcomes",
    labelnames=["outcome", "reason"],
)

# Background job metrics
WORKFLOW_EXECUTIONS = Counter(
    "feedloop_workflow_executions_total",
    "Total workflow executions",
    labelnames=["workflow_name", "status"],
)

WORKFLOW_LATENCY = Histogram(
    "feedloop_workflow_latency_seconds",
    "Workflow execution latency in seconds",
    labelnames=["workflow_name"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)


def setup_metrics(port: int, enabled: bool = True) -> None:
    """Expose metrics over HTTP when enabled."""
    if enabled:
        start_http_server(port)
