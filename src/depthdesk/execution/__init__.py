"""Order submission and outcome classification."""

from depthdesk.execution.classifier import average_fill_price, classify, classify_failure
from depthdesk.execution.orders import OrderClient, size_from_balance

__all__ = [
    "OrderClient",
    "average_fill_price",
    "classify",
    "classify_failure",
    "size_from_balance",
]
