"""ipsbench: adaptive iterations-per-second benchmarking.

Calibrates a batch size per benchmarked item, measures throughput in
timed batches, and statistically compares competing implementations.
"""

from __future__ import annotations

__version__ = "0.1.0"
