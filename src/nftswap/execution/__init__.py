"""
Approvals, fills and order status tracking.
"""

from nftswap.execution.approvals import ApprovalChecker
from nftswap.execution.fill import FillExecutor, FillOptions
from nftswap.execution.status import StatusTracker

__all__ = [
    "ApprovalChecker",
    "FillExecutor",
    "FillOptions",
    "StatusTracker",
]
