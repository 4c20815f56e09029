"""
In-process counters for HTTP traffic, the SC2Pulse client and the ranking cache.
"""

import math
from typing import Any, Dict, List

# Upper bounds for latency bins (ms); last bin is open-ended
LATENCY_BOUNDS_MS: List[int] = [100, 250, 500, 1000, 2000]
UPSTREAM_ERROR_CLASSES = ("timeout", "http4xx", "http5xx", "network", "other")


class Metrics:
    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.http_total = 0
        self.http_5xx_total = 0
        self.pulse_req_total = 0
        self.cache_hit_total = 0
        self.cache_miss_total = 0
        self.data_quality_dropped_total = 0
        self.pulse_err_total: Dict[str, int] = {k: 0 for k in UPSTREAM_ERROR_CLASSES}
        self.pulse_latency_bins: List[int] = [0] * (len(LATENCY_BOUNDS_MS) + 1)

    def record_cache(self, hit: bool) -> None:
        if hit:
            self.cache_hit_total += 1
        else:
            self.cache_miss_total += 1

    def record_upstream_error(self, error_class: str) -> None:
        if error_class not in self.pulse_err_total:
            error_class = "other"
        self.pulse_err_total[error_class] += 1

    def observe_pulse_latency(self, ms: float) -> None:
        for idx, bound in enumerate(LATENCY_BOUNDS_MS):
            if ms < bound:
                self.pulse_latency_bins[idx] += 1
                return
        self.pulse_latency_bins[-1] += 1

    def estimate_quantile(self, q: float) -> int:
        """Upper bound of the latency bin holding quantile ``q``; 3000 for the open bin."""
        total = sum(self.pulse_latency_bins)
        if total == 0:
            return 0
        target = math.ceil(total * q)
        cumulative = 0
        for idx, count in enumerate(self.pulse_latency_bins):
            cumulative += count
            if cumulative >= target:
                return LATENCY_BOUNDS_MS[idx] if idx < len(LATENCY_BOUNDS_MS) else 3000
        return 3000

    def snapshot(self) -> Dict[str, Any]:
        return {
            "http_total": self.http_total,
            "http_5xx_total": self.http_5xx_total,
            "pulse_req_total": self.pulse_req_total,
            "cache_hit_total": self.cache_hit_total,
            "cache_miss_total": self.cache_miss_total,
            "data_quality_dropped_total": self.data_quality_dropped_total,
            "pulse_err_total": dict(self.pulse_err_total),
            "pulse_latency_bins": list(self.pulse_latency_bins),
            "pulse_latency_p50_ms": self.estimate_quantile(0.5),
            "pulse_latency_p95_ms": self.estimate_quantile(0.95),
        }


metrics = Metrics()
