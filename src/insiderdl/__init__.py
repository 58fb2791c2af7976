"""
QuiverQuant insider trading data lake.

Downloads the daily insider transactions feed and merges it into
per-ticker history files and per-date universe files.
"""

from insiderdl.update.app import InsiderTradingDownloader, RunOutcome, RunReport
from insiderdl.storage.config_loader import DownloaderConfig, load_config

__version__ = "0.1.0"

__all__ = ["InsiderTradingDownloader", "RunOutcome", "RunReport", "DownloaderConfig", "load_config"]
