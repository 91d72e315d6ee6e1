import json
import time
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Any, Optional
import threading


FETCH_KINDS = ('resolve', 'page', 'continuation')


@dataclass
class LoaderMetrics:
    """Counters for one pages loader."""
    context_uri: Optional[str]
    initial_resolutions: int = 0
    page_fetches: int = 0
    continuation_fetches: int = 0
    cache_hits: int = 0
    fetch_failures: int = 0
    end_of_pages: int = 0
    total_fetch_duration_ms: int = 0
    start_time: Optional[datetime] = None

    @property
    def total_fetches(self) -> int:
        """Remote round-trips of any kind."""
        return self.initial_resolutions + self.page_fetches + self.continuation_fetches

    @property
    def average_fetch_duration_ms(self) -> float:
        if self.total_fetches == 0:
            return 0.0
        return self.total_fetch_duration_ms / self.total_fetches


class MetricsCollector:
    """Collects fetch and cache metrics for a pages loader."""

    def __init__(self, context_uri: Optional[str] = None):
        """Initialize metrics collector."""
        self.metrics = LoaderMetrics(context_uri=context_uri, start_time=datetime.now())
        self._lock = threading.Lock()

    def record_fetch(self, kind: str, duration_ms: int) -> None:
        """Record a completed remote round-trip."""
        if kind not in FETCH_KINDS:
            raise ValueError(f"Unknown fetch kind: {kind}")
        with self._lock:
            if kind == 'resolve':
                self.metrics.initial_resolutions += 1
            elif kind == 'page':
                self.metrics.page_fetches += 1
            else:
                self.metrics.continuation_fetches += 1
            self.metrics.total_fetch_duration_ms += duration_ms

    def record_fetch_failure(self) -> None:
        with self._lock:
            self.metrics.fetch_failures += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self.metrics.cache_hits += 1

    def record_end_of_pages(self) -> None:
        with self._lock:
            self.metrics.end_of_pages += 1

    @contextmanager
    def measure(self, kind: str):
        """Context manager timing one remote round-trip.

        Failed round-trips are counted as failures, not as fetches.
        """
        start = time.monotonic()
        try:
            yield self
        except Exception:
            self.record_fetch_failure()
            raise
        self.record_fetch(kind, int((time.monotonic() - start) * 1000))

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for JSON serialization."""
        with self._lock:
            data = asdict(self.metrics)
            if data['start_time']:
                data['start_time'] = data['start_time'].isoformat()
            data['total_fetches'] = self.metrics.total_fetches
            data['average_fetch_duration_ms'] = self.metrics.average_fetch_duration_ms
            return data

    def save_to_file(self, file_path: str) -> None:
        """Save metrics to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
