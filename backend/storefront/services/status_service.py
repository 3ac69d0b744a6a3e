"""
Storefront Backend — Status Reporter
======================================

What:  Builds the status snapshot served by GET /api/status and summarized
       by the HTML page at /.
Why:   Monitoring, load balancer probes and humans checking a deployment all
       need to know that the process is up and which build it runs.
How:   Every call reads the clock and the process metrics afresh; nothing is
       cached between requests.

Detail levels:
    production      status, version, environment, timestamp
    anything else   + uptime ("1h 1m", floored), memory used/total (MB, 2
                      decimals), platform, runtime_version
"""

import platform
import sys
import time
from datetime import datetime, timezone
from typing import Optional

import psutil

from storefront.config import Settings
from storefront.schemas.common import MemoryUsage, StatusSnapshot

BYTES_PER_MB = 1024 * 1024


def format_uptime(seconds: float) -> str:
    """
    Render a duration as whole hours and whole minutes, truncating.

    >>> format_uptime(3661)
    '1h 1m'
    >>> format_uptime(7199.9)
    '1h 59m'
    """
    total = max(0, int(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    return f"{hours}h {minutes}m"


def format_megabytes(num_bytes: float) -> str:
    """Bytes → '<MB rounded to 2 decimals> MB', e.g. 54853632 → '52.31 MB'."""
    return f"{round(num_bytes / BYTES_PER_MB, 2)} MB"


class StatusReporter:
    """Computes `StatusSnapshot` values for one application's settings."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def process_uptime(self) -> float:
        """Seconds since this OS process started."""
        return time.time() - psutil.Process().create_time()

    def memory_usage(self) -> MemoryUsage:
        used = psutil.Process().memory_info().rss
        total = psutil.virtual_memory().total
        return MemoryUsage(used=format_megabytes(used), total=format_megabytes(total))

    def snapshot(self, now: Optional[datetime] = None) -> StatusSnapshot:
        snapshot = StatusSnapshot(
            status="ok",
            version=self.settings.version,
            environment=self.settings.environment,
            timestamp=now or datetime.now(timezone.utc),
        )
        if self.settings.is_production:
            return snapshot

        snapshot.uptime = format_uptime(self.process_uptime())
        snapshot.memory = self.memory_usage()
        snapshot.platform = sys.platform
        snapshot.runtime_version = platform.python_version()
        return snapshot
