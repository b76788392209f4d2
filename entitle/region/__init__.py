"""
Region — coarse pricing region from locale/timezone signals.

    from entitle import region as R

    R.resolve("hi-IN", "Asia/Kolkata")   # Region.IN
    R.resolve("en-GB", "Europe/London")  # Region.EU
"""

from entitle.region._resolve import Region, resolve

__all__ = (
    "Region",
    "resolve",
)
