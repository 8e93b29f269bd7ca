"""
Shared compute infrastructure for PermStats.

IMPORTANT: This is NOT where domain-specific backends live. Those go in
{domain}/backends/.
"""

from permstats.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
