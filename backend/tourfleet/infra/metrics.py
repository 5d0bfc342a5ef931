import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)


class Metrics:
    def __init__(self, enabled: bool = False) -> None:
        self._configure(enabled)

    def _configure(self, enabled: bool) -> None:
        self.enabled = enabled
        self.registry = CollectorRegistry(auto_describe=True)
        if not enabled:
            self.vehicle_holds = None
            self.availability_checks = None
            self.expired_holds_cleaned = None
            self.block_conflicts = None
            self.http_latency = None
            self.job_last_success = None
            self.job_errors = None
            return

        self.vehicle_holds = Counter(
            "vehicle_holds_total",
            "Hold block attempts by outcome.",
            ["outcome"],
            registry=self.registry,
        )
        self.availability_checks = Counter(
            "availability_checks_total",
            "Availability checks by result.",
            ["result"],
            registry=self.registry,
        )
        self.expired_holds_cleaned = Counter(
            "expired_holds_cleaned_total",
            "Expired hold blocks removed by sweeps.",
            registry=self.registry,
        )
        self.block_conflicts = Counter(
            "block_conflicts_total",
            "Overlap constraint rejections by operation.",
            ["operation"],
            registry=self.registry,
        )
        self.http_latency = Histogram(
            "http_request_latency_seconds",
            "HTTP request latency by route.",
            ["method", "path", "status_class"],
            registry=self.registry,
        )
        self.job_last_success = Gauge(
            "job_last_success_timestamp",
            "Unix timestamp of the last successful job run.",
            ["job"],
            registry=self.registry,
        )
        self.job_errors = Counter(
            "job_errors_total",
            "Job failures by reason.",
            ["job", "reason"],
            registry=self.registry,
        )

    def record_hold(self, outcome: str) -> None:
        if not self.enabled or self.vehicle_holds is None:
            return
        self.vehicle_holds.labels(outcome=outcome or "unknown").inc()

    def record_availability_check(self, result: str) -> None:
        if not self.enabled or self.availability_checks is None:
            return
        self.availability_checks.labels(result=result or "unknown").inc()

    def record_expired_holds_cleaned(self, count: int) -> None:
        if not self.enabled or self.expired_holds_cleaned is None:
            return
        if count <= 0:
            return
        self.expired_holds_cleaned.inc(count)

    def record_block_conflict(self, operation: str) -> None:
        if not self.enabled or self.block_conflicts is None:
            return
        self.block_conflicts.labels(operation=operation or "unknown").inc()

    def record_http_latency(self, method: str, path: str, status_code: int, duration_seconds: float) -> None:
        if not self.enabled or self.http_latency is None:
            return
        status_class = f"{status_code // 100}xx" if status_code else "unknown"
        duration_seconds = max(0.0, float(duration_seconds))
        self.http_latency.labels(method=method, path=path, status_class=status_class).observe(
            duration_seconds
        )

    def record_job_success(self, job: str, timestamp: float | None = None) -> None:
        if not self.enabled or self.job_last_success is None:
            return
        ts = timestamp if timestamp is not None else time.time()
        self.job_last_success.labels(job=job).set(ts)

    def record_job_error(self, job: str, reason: str) -> None:
        if not self.enabled or self.job_errors is None:
            return
        self.job_errors.labels(job=job, reason=reason or "unknown").inc()

    def render(self) -> tuple[bytes, str]:
        if not self.enabled:
            return b"metrics_disabled 1\n", "text/plain; version=0.0.4"
        try:
            return generate_latest(self.registry), CONTENT_TYPE_LATEST
        except Exception:  # noqa: BLE001
            logger.exception("metrics_render_failed")
            return b"metrics_render_failed 1\n", "text/plain; version=0.0.4"


metrics = Metrics(enabled=False)


def configure_metrics(enabled: bool) -> Metrics:
    metrics._configure(enabled)
    return metrics
