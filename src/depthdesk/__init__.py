"""depthdesk - real-time order book and trade feed reconciliation."""

__version__ = "0.1.0"
