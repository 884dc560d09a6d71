import structlog
import logging
import sys
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "multimodal"
) -> None:
    """Setup structured logging configuration"""

    # Configure Python logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    # Processors for structlog
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    # Add appropriate renderer based on format
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    # Configure structlog
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Set service name in context
    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
        version=os.getenv("SERVICE_VERSION", "unknown")
    )


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to all log entries"""

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()

    context = structlog.contextvars.get_contextvars()

    # Session and context ids bound by the chat session / context
    for key in ("session_id", "context_id"):
        value = context.get(key)
        if value and key not in event_dict:
            event_dict[key] = value

    return event_dict


class MultimodalLogger:
    """Specialized logger for embedding lifecycle events"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_cache_event(
        self,
        action: str,
        modality: str,
        cache_key: str,
        size: Optional[int] = None,
        **kwargs
    ):
        """Log cache hits, misses, coalesced waits and evictions"""

        self.logger.debug(
            "cache_event",
            action=action,
            modality=modality,
            cache_key=cache_key,
            size=size,
            **kwargs
        )

    def log_window_event(
        self,
        action: str,
        modality: str,
        owner_id: Optional[str] = None,
        window_size: Optional[int] = None,
        **kwargs
    ):
        """Log window admissions, evictions and clears"""

        self.logger.debug(
            "window_event",
            action=action,
            modality=modality,
            owner_id=owner_id,
            window_size=window_size,
            **kwargs
        )

    def log_turn(
        self,
        session_id: str,
        role: str,
        images: int = 0,
        audio: int = 0,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log a transcript turn"""

        self.logger.info(
            "turn_recorded" if success else "turn_failed",
            session_id=session_id,
            role=role,
            images=images,
            audio=audio,
            error=error
        )


# Global logger instance
multimodal_logger = MultimodalLogger("multimodal")


class MetricsCollector:
    """Collect and export metrics"""

    def __init__(self):
        self.metrics: Dict[str, Any] = {}

    def record_latency(self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        """Record operation latency"""

        key = f"latency.{operation}"
        if key not in self.metrics:
            self.metrics[key] = {
                "count": 0,
                "sum": 0,
                "min": float('inf'),
                "max": 0
            }

        self.metrics[key]["count"] += 1
        self.metrics[key]["sum"] += duration_ms
        self.metrics[key]["min"] = min(self.metrics[key]["min"], duration_ms)
        self.metrics[key]["max"] = max(self.metrics[key]["max"], duration_ms)

        multimodal_logger.logger.debug(
            "metric",
            metric_type="latency",
            operation=operation,
            duration_ms=duration_ms,
            tags=tags or {}
        )

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        """Increment a counter metric"""

        if name not in self.metrics:
            self.metrics[name] = 0
        self.metrics[name] += value

        multimodal_logger.logger.debug(
            "metric",
            metric_type="counter",
            name=name,
            value=value,
            tags=tags or {}
        )

    def set_gauge(self, name: str, value: float, tags: Optional[Dict[str, str]] = None):
        """Set a gauge metric"""

        self.metrics[name] = value

        multimodal_logger.logger.debug(
            "metric",
            metric_type="gauge",
            name=name,
            value=value,
            tags=tags or {}
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of all metrics"""

        summary = {}
        for key, value in self.metrics.items():
            if isinstance(value, dict) and "count" in value:
                # Latency metric
                summary[key] = {
                    "count": value["count"],
                    "avg": value["sum"] / value["count"] if value["count"] > 0 else 0,
                    "min": value["min"] if value["min"] != float('inf') else 0,
                    "max": value["max"]
                }
            else:
                # Counter or gauge
                summary[key] = value

        return summary

    def reset(self):
        """Drop all collected metrics"""
        self.metrics.clear()


# Global metrics collector
metrics = MetricsCollector()
