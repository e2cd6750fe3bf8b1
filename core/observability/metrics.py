"""
Metrics Collection for the Tenancy Reconciliation Service

Collects and exposes metrics for:
- Source fetches (PM files, Odoo RPC) started/completed/failed
- Tenant matching outcomes per tier
- Reconciliation runs (rows, flagged, one-sided)
- Processing times (average, p95)

Metrics live in memory only; they reset when the process restarts.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class SourceMetrics:
    """Metrics for data source fetches."""
    started: int = 0
    completed: int = 0
    failed: int = 0

    # By source name
    by_source: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: defaultdict(lambda: {"started": 0, "completed": 0, "failed": 0, "rows": 0})
    )


@dataclass
class MatchMetrics:
    """Counts of tenant-name match outcomes per tier."""
    total: int = 0
    by_tier: Dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class ReconciliationMetrics:
    """Totals across reconciliation runs."""
    runs: int = 0
    rows: int = 0
    flagged: int = 0
    only_pm: int = 0
    only_am: int = 0
    last_run: Dict[str, int] = field(default_factory=dict)


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Raw timing samples (keep last N for percentile calculations)
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_source_completed("odoo", rows=812, duration_ms=1500)
        metrics.record_match("exact_strip")
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.sources = SourceMetrics()
        self.matches = MatchMetrics()
        self.reconciliations = ReconciliationMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Source Metrics
    # =========================================================================

    def record_source_started(self, source: str):
        with self._lock:
            self.sources.started += 1
            self.sources.by_source[source]["started"] += 1

    def record_source_completed(self, source: str, rows: int = 0, duration_ms: float = None):
        with self._lock:
            self.sources.completed += 1
            self.sources.by_source[source]["completed"] += 1
            self.sources.by_source[source]["rows"] = rows
            if duration_ms:
                self.timings.add_sample(duration_ms, f"source.{source}")

    def record_source_failed(self, source: str):
        with self._lock:
            self.sources.failed += 1
            self.sources.by_source[source]["failed"] += 1

    # =========================================================================
    # Match Metrics
    # =========================================================================

    def record_match(self, tier: str):
        """Record one tenant-name match outcome ("exact", "jaccard", ...)."""
        with self._lock:
            self.matches.total += 1
            self.matches.by_tier[tier] += 1

    # =========================================================================
    # Reconciliation Metrics
    # =========================================================================

    def record_reconciliation(
        self,
        rows: int,
        flagged: int,
        only_pm: int,
        only_am: int,
        duration_ms: float = None,
    ):
        """Record the outcome of one reconciliation run."""
        with self._lock:
            self.reconciliations.runs += 1
            self.reconciliations.rows += rows
            self.reconciliations.flagged += flagged
            self.reconciliations.only_pm += only_pm
            self.reconciliations.only_am += only_am
            self.reconciliations.last_run = {
                "rows": rows,
                "flagged": flagged,
                "only_pm": only_pm,
                "only_am": only_am,
            }
            if duration_ms:
                self.timings.add_sample(duration_ms, "reconcile")

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "sources": {
                    "started": self.sources.started,
                    "completed": self.sources.completed,
                    "failed": self.sources.failed,
                    "by_source": {k: dict(v) for k, v in self.sources.by_source.items()},
                },
                "matches": {
                    "total": self.matches.total,
                    "by_tier": dict(self.matches.by_tier),
                },
                "reconciliations": {
                    "runs": self.reconciliations.runs,
                    "rows": self.reconciliations.rows,
                    "flagged": self.reconciliations.flagged,
                    "only_pm": self.reconciliations.only_pm,
                    "only_am": self.reconciliations.only_am,
                    "last_run": dict(self.reconciliations.last_run),
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_match(tier: str):
    get_metrics().record_match(tier)


def record_reconciliation(rows: int, flagged: int, only_pm: int, only_am: int, duration_ms: float = None):
    get_metrics().record_reconciliation(rows, flagged, only_pm, only_am, duration_ms)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
