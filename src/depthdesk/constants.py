"""Core constants for depthdesk."""

from decimal import Decimal
from enum import Enum


class Side(str, Enum):
    """Order side as carried on the wire."""

    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, Enum):
    """Order type for placement requests."""

    LIMIT = "Limit"
    MARKET = "Market"


class OutcomeKind(str, Enum):
    """Classified result of an order submission."""

    RESTING = "resting"
    PARTIAL_FILL = "partial_fill"
    FULL_FILL = "full_fill"
    REJECTED = "rejected"
    NETWORK_ERROR = "network_error"


class FeedStatus(str, Enum):
    """Health of a single inbound feed."""

    CONNECTING = "connecting"
    LIVE = "live"
    STALE = "stale"
    DISCONNECTED = "disconnected"
    CLOSED = "closed"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================
# Default Values
# ============================================

DEFAULT_HTTP_BASE_URL = "http://localhost:8000"
DEFAULT_WS_URL = "ws://localhost:8000/ws"
DEFAULT_REQUEST_TIMEOUT_SEC = 5.0

DEFAULT_TRADES_POLL_SEC = 1.0
DEFAULT_MY_TRADES_POLL_SEC = 3.0
DEFAULT_BALANCE_POLL_SEC = 1.0
DEFAULT_RECONNECT_DELAY_SEC = 2.0

DEFAULT_MAX_LEVELS = 15
DEFAULT_CANDLE_INTERVAL_SEC = 60
DEFAULT_STATS_WINDOW_HOURS = 24

DEFAULT_QUOTE_ASSET = "USDC"
DEFAULT_BASE_ASSET = "BAD"

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MS_PER_HOUR = 60 * 60 * 1000

# ============================================
# Application Constants
# ============================================

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
