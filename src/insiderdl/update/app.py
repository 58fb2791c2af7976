"""
Insider Trading Download App
============================

Daily update of the QuiverQuant insider trading dataset:
1. Fetch live/insiders for the target date (rate limited, retried)
2. Parse and normalize the transactions
3. Group by ticker and resolve security identifiers for the universe
4. Merge-write the date's universe file and every ticker's history file

Every failure is logged and reported as run() == False. Files written before
a failure stay on disk; re-running the date is safe because merge-writes
only ever union lines.
"""
import datetime as dt
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from insiderdl.collection.models import parse_transactions
from insiderdl.collection.quiver import QuiverClient
from insiderdl.exceptions import InputRejectedError, InsiderTradingError
from insiderdl.master.symbol_resolver import LocalSecurityMaster, SymbolResolver
from insiderdl.storage.aggregator import GroupAggregator, LINE_DATE_FORMAT
from insiderdl.storage.config_loader import DownloaderConfig
from insiderdl.storage.file_merger import FileMerger
from insiderdl.storage.rate_limiter import RateLimiter
from insiderdl.utils.logger import LoggerFactory


class RunOutcome(Enum):
    SUCCESS = "success"
    REJECTED = "rejected"
    NO_DATA = "no_data"
    RESOLUTION_UNAVAILABLE = "resolution_unavailable"
    FAILED = "failed"


@dataclass
class RunReport:
    processing_date: Optional[dt.date]
    outcome: RunOutcome
    tickers_written: int = 0
    universe_lines: int = 0
    elapsed: float = 0.0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is RunOutcome.SUCCESS


def validate_processing_date(processing_date: Optional[dt.date], today: Optional[dt.date] = None) -> dt.date:
    """
    :param processing_date: Date to process (a datetime is truncated to its date)
    :param today: Reference date (default: current UTC date)
    :return: processing_date as a date
    :raises InputRejectedError: If unset (None / date.min) or not strictly before today
    """
    if isinstance(processing_date, dt.datetime):
        processing_date = processing_date.date()
    if today is None:
        today = dt.datetime.now(dt.timezone.utc).date()
    if processing_date is None or processing_date == dt.date.min:
        raise InputRejectedError("Processing date is not set")
    if processing_date >= today:
        raise InputRejectedError(
            f"Encountered data from invalid date: {processing_date:%Y-%m-%d} - Skipping"
        )
    return processing_date


class InsiderTradingDownloader:
    """
    Downloads one day of insider trading data per run() call.

    Owns a RateLimiter for its lifetime; use it as a context manager (or
    call close()) so the limiter and HTTP session are released.
    """

    def __init__(
        self,
        config: DownloaderConfig,
        resolver: Optional[SymbolResolver] = None,
        client: Optional[QuiverClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        :param config: Paths, credentials and retry settings
        :param resolver: Symbol resolver; default is a LocalSecurityMaster on config.map_files_dir
        :param client: Pre-built QuiverClient (tests); default is built from config
        :param logger: Logger used by every stage; default is one logger per stage
            (download, fetch, resolve, merge) sharing config.log_dir
        """
        self.config = config
        if logger is None:
            factory = LoggerFactory(
                log_dir=config.log_dir,
                level=logging.INFO,
                console_output=True
            )
            get_logger = factory.get_logger
        else:
            get_logger = lambda name: logger  # noqa: E731
        self.logger = get_logger("insider_trading.download")

        self.rate_limiter = RateLimiter.from_interval(config.min_interval)
        self.client = client or QuiverClient(
            api_key=config.api_key,
            rate_limiter=self.rate_limiter,
            logger=get_logger("insider_trading.fetch"),
            base_url=config.base_url,
            max_retries=config.max_retries,
            retry_sleep=config.retry_sleep,
            timeout=config.timeout
        )

        if resolver is None:
            resolver = LocalSecurityMaster(config.map_files_dir, logger=get_logger("insider_trading.resolve"))
        self.resolver = resolver

        self.merger = FileMerger(
            destination_dir=config.destination_dir,
            processed_dir=config.processed_dir,
            logger=get_logger("insider_trading.merge")
        )

    @property
    def can_create_universe_files(self) -> bool:
        is_available = getattr(self.resolver, 'is_available', None)
        if is_available is None:
            return True
        return bool(is_available())

    def run(self, processing_date: Optional[dt.date]) -> bool:
        """
        Fetch, merge and persist one day of data.

        :param processing_date: Date to process; must be before today (UTC)
        :return: True only if every step succeeded and universe files could be built
        """
        return self.process(processing_date).succeeded

    def process(self, processing_date: Optional[dt.date]) -> RunReport:
        """Same as run() but returns a RunReport naming the outcome."""
        start = time.perf_counter()
        self.logger.info("Start downloading/processing QuiverQuant Insider Trading data")

        try:
            report = self._process(processing_date)
        except InputRejectedError as e:
            self.logger.info(str(e))
            report = RunReport(processing_date, RunOutcome.REJECTED, error=str(e))
        except InsiderTradingError as e:
            self.logger.error(f"Run for {processing_date} failed: {e}")
            report = RunReport(processing_date, RunOutcome.FAILED, error=str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error processing {processing_date}: {e}", exc_info=True)
            report = RunReport(processing_date, RunOutcome.FAILED, error=str(e))

        report.elapsed = time.perf_counter() - start
        self.logger.info(
            f"Finished {processing_date} in {report.elapsed:.2f}s: {report.outcome.value} "
            f"({report.tickers_written} tickers, {report.universe_lines} universe lines)"
        )
        return report

    def _process(self, processing_date: Optional[dt.date]) -> RunReport:
        processing_date = validate_processing_date(processing_date)

        raw_body = self.client.fetch(f"live/insiders?date={processing_date.strftime(LINE_DATE_FORMAT)}")
        if not raw_body or not raw_body.strip():
            # Not-found is already logged by the client
            return RunReport(processing_date, RunOutcome.NO_DATA)

        records = parse_transactions(raw_body)
        self.logger.info(f"Parsed {len(records)} transactions for {processing_date}")

        can_create_universe = self.can_create_universe_files
        aggregator = GroupAggregator(
            resolver=self.resolver if can_create_universe else None,
            logger=self.logger
        )
        result = aggregator.aggregate(records, processing_date)

        report = RunReport(processing_date, RunOutcome.SUCCESS)

        if not can_create_universe:
            self.logger.warning(
                f"Security mapping data unavailable, skipping universe file for {processing_date}"
            )
            report.outcome = RunOutcome.RESOLUTION_UNAVAILABLE
        elif result.universe:
            self.merger.write_universe(processing_date, result.universe)
            report.universe_lines = len(result.universe)

        for ticker, lines in result.per_ticker.items():
            self.merger.write_history(ticker, lines)
            report.tickers_written += 1

        return report

    def close(self) -> None:
        self.rate_limiter.close()
        self.client.close()

    def __enter__(self) -> "InsiderTradingDownloader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
