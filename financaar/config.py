"""
Configuration module for Financaar.

Contains constants, settings, and configuration values used throughout the application.
Environment overrides are read from a `.env` file at the project root when present.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Version
VERSION = "0.1.0"

# Application paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOG_DIR = PROJECT_ROOT / "logs"

load_dotenv(PROJECT_ROOT / ".env")

# Database configuration
DEFAULT_DB_PATH = Path(os.getenv("FINANCAAR_DB_PATH", DATA_DIR / "financaar.db"))
DB_TIMEOUT = 10.0  # seconds

# Ledger validation
MAX_ACCOUNT_NAME_LENGTH = 100
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500

# Analytics windows
DEFAULT_MONTHLY_WINDOW = 6
DEFAULT_CATEGORY_WINDOW = 6
DEFAULT_CHART_DAYS = 30
ANALYTICS_PERIODS = (3, 6, 12)
SHORT_TREND_PERIOD = 3
LONG_TREND_PERIOD = 6
STABILITY_WINDOW = 6
EMERGENCY_FUND_MONTHS = 3

# Daily chart
SAVINGS_TARGET_RATE = 20.0  # percent
CHART_MAX_AMPLITUDE = 100.0

# Financial health score rubric: (threshold, points), checked top-down
SAVINGS_RATE_BANDS = [(20.0, 40), (15.0, 30), (10.0, 20), (5.0, 10)]
POSITIVE_NET_SAVINGS_POINTS = 30
ZERO_NET_SAVINGS_POINTS = 15
IMPROVING_TREND_POINTS = 20
STEADY_TREND_POINTS = 10
BALANCE_TIERS = [(10000.0, 10), (5000.0, 7), (1000.0, 5), (0.0, 2)]

# Transaction listing
DEFAULT_HISTORY_LIMIT = 25

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "financaar.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Settings keys
SETUP_COMPLETED_KEY = "setup_completed"
USER_NAME_KEY = "user_name"


def ensure_directories():
    """Ensure required directories exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_log_level():
    """Get the configured log level."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(LOG_LEVEL.upper(), logging.INFO)


def configure_logging():
    """Configure root logging for application entry points."""
    ensure_directories()
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_DIR / LOG_FILE),
            logging.StreamHandler(sys.stdout),
        ],
    )
