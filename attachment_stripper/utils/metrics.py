"""
Metrics Collection Module
Tracks how many messages were stripped and what it saved
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Deque


@dataclass
class Metrics:
    """
    Collects counters for one or more strip runs.

    Processing times are kept in a bounded deque so percentile calculation
    stays cheap on long runs.
    """

    # Messages fetched in full and examined
    messages_processed: int = 0

    # Messages that were rebuilt and reinserted without attachments
    messages_stripped: int = 0

    attachments_removed: int = 0

    # Reported size of removed attachments
    bytes_removed: int = 0

    errors_count: Counter = field(default_factory=Counter)

    # Per-message processing time in milliseconds
    processing_time_ms: Deque[float] = field(default_factory=lambda: deque(maxlen=1000))

    start_time: datetime = field(default_factory=datetime.now)

    def record_message_processed(self):
        """Record that a message was examined, whatever the outcome."""
        self.messages_processed += 1

    def record_strip(self, attachment_count: int, attachment_bytes: int):
        """
        Record that a message was stripped.

        Args:
            attachment_count: Number of attachments removed from the message
            attachment_bytes: Total reported size of those attachments
        """
        self.messages_stripped += 1
        self.attachments_removed += attachment_count
        self.bytes_removed += attachment_bytes

    def record_processing_time(self, time_ms: float):
        """Record how long one message took, in milliseconds."""
        self.processing_time_ms.append(time_ms)

    def record_error(self, error_type: str):
        """
        Record that an error occurred.

        Args:
            error_type: Error class name, e.g. "MultipleBoundariesError"
        """
        self.errors_count[error_type] += 1

    def get_summary(self) -> Dict:
        """
        Get a summary of all metrics.

        Returns:
            Dictionary suitable for logging or export
        """
        stats = {}
        if self.processing_time_ms:
            sorted_times = sorted(self.processing_time_ms)
            n = len(sorted_times)
            stats = {
                "avg_ms": sum(sorted_times) / n,
                "min_ms": sorted_times[0],
                "max_ms": sorted_times[-1],
                "p50_ms": sorted_times[n // 2],
                "p95_ms": sorted_times[int(n * 0.95)] if n > 1 else sorted_times[0],
            }

        return {
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
            "messages_processed": self.messages_processed,
            "messages_stripped": self.messages_stripped,
            "attachments_removed": self.attachments_removed,
            "bytes_removed": self.bytes_removed,
            "processing_time_stats": stats,
            "errors": dict(self.errors_count),
        }

    def reset(self):
        """Reset all metrics to their initial state."""
        self.messages_processed = 0
        self.messages_stripped = 0
        self.attachments_removed = 0
        self.bytes_removed = 0
        self.errors_count.clear()
        self.processing_time_ms.clear()
        self.start_time = datetime.now()
