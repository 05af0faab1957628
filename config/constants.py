"""Project-wide constants used by the holdings sync job."""
from __future__ import annotations

# Reason tag passed to the refresher for provider-driven updates
HOLDINGS_UPDATE_REASON = "holdings-update"

# Fund type tags as stored on the funds table
FUND_TYPE_ETF = "etf"
FUND_TYPE_MUTUAL_FUND = "mutual-fund"

# Provider categories
CATEGORY_ETF = "etf"
CATEGORY_MUTUAL_FUND = "mutual-fund"

# Literal format of the provider's atDate field
HOLDINGS_DATE_FORMAT = "%Y-%m-%d"

# Provider defaults
FINNHUB_BASE_URL = "https://finnhub.io/api/v1"
FINNHUB_TIMEOUT_SECONDS: float = 10.0

DEFAULT_DB_CONNECTION_STRING = "sqlite:///fund_holdings.db"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
