import structlog

from multimodal.infrastructure.observability.logging import MetricsCollector, add_service_context, setup_logging


def test_service_context_adds_bound_ids():
    with structlog.contextvars.bound_contextvars(session_id="s1", context_id="c1"):
        event = add_service_context(None, "info", {"event": "turn_recorded"})

    assert event["session_id"] == "s1"
    assert event["context_id"] == "c1"
    assert "timestamp" in event


def test_explicit_ids_are_not_overwritten():
    with structlog.contextvars.bound_contextvars(session_id="bound"):
        event = add_service_context(None, "info", {"event": "x", "session_id": "explicit"})

    assert event["session_id"] == "explicit"


def test_setup_logging_configures_structlog():
    try:
        setup_logging(log_level="DEBUG", log_format="console", service_name="test")
        assert structlog.contextvars.get_contextvars()["service"] == "test"
        structlog.get_logger("multimodal.test").info("configured", answer=42)
    finally:
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()


def test_metrics_summary():
    collector = MetricsCollector()
    collector.record_latency("embedding.compute", 10.0)
    collector.record_latency("embedding.compute", 30.0)
    collector.increment_counter("cache.image.hits")
    collector.increment_counter("cache.image.hits", 2)
    collector.set_gauge("cache.image.size", 3)

    summary = collector.get_metrics_summary()

    assert summary["latency.embedding.compute"] == {"count": 2, "avg": 20.0, "min": 10.0, "max": 30.0}
    assert summary["cache.image.hits"] == 3
    assert summary["cache.image.size"] == 3

    collector.reset()
    assert collector.get_metrics_summary() == {}
