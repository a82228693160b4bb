"""
Prometheus metrics for the feed pipeline.

Defines metrics for:
- Remote API requests, retries and latency
- Response and translation cache effectiveness
- Translation and model download outcomes
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from kickfeed.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the feed pipeline.

    Usage:
        metrics = get_metrics()
        metrics.record_request("/news", "success", latency=0.12)
        metrics.record_cache("feed", hit=True)
    """

    def __init__(self):
        self.requests = Counter(
            "kickfeed_requests_total",
            "Total remote API requests by logical call outcome",
            ["endpoint", "outcome"],
        )

        self.retries = Counter(
            "kickfeed_request_retries_total",
            "Total request retries",
            ["reason"],  # reason: rate_limited, network
        )

        self.request_latency = Histogram(
            "kickfeed_request_latency_seconds",
            "Latency of a logical request including retries",
            ["endpoint"],
            buckets=LATENCY_BUCKETS,
        )

        self.cache_hits = Counter(
            "kickfeed_cache_hits_total",
            "Cache hits",
            ["cache"],
        )

        self.cache_misses = Counter(
            "kickfeed_cache_misses_total",
            "Cache misses",
            ["cache"],
        )

        self.translations = Counter(
            "kickfeed_translations_total",
            "Article translations by outcome",
            ["outcome"],  # outcome: translated, skipped, failed
        )

        self.model_downloads = Counter(
            "kickfeed_model_downloads_total",
            "Translation model downloads by outcome",
            ["language", "outcome"],
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        port = port or get_settings().metrics_port
        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    def record_request(
        self,
        endpoint: str,
        outcome: str,
        latency: float | None = None,
    ) -> None:
        """
        Record a logical request.

        Args:
            endpoint: API path (e.g. /news)
            outcome: success or the error class name
            latency: Optional total latency in seconds
        """
        self.requests.labels(endpoint=endpoint, outcome=outcome).inc()
        if latency is not None:
            self.request_latency.labels(endpoint=endpoint).observe(latency)

    def record_retry(self, reason: str) -> None:
        self.retries.labels(reason=reason).inc()

    def record_cache(self, cache: str, hit: bool) -> None:
        """
        Record cache hit or miss.

        Args:
            cache: Cache name (feed, translation)
            hit: True for cache hit, False for miss
        """
        if hit:
            self.cache_hits.labels(cache=cache).inc()
        else:
            self.cache_misses.labels(cache=cache).inc()

    def record_translation(self, outcome: str, count: int = 1) -> None:
        self.translations.labels(outcome=outcome).inc(count)

    def record_model_download(self, language: str, outcome: str) -> None:
        self.model_downloads.labels(language=language, outcome=outcome).inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def setup_metrics(settings: Settings | None = None) -> bool:
    """
    Expose metrics over HTTP when ``metrics_enabled`` is set.

    Returns:
        True if the exporter was started
    """
    settings = settings or get_settings()
    if not settings.metrics_enabled:
        return False
    get_metrics().start_server(settings.metrics_port)
    return True
