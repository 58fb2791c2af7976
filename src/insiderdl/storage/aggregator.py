"""
Groups a day's transactions into per-ticker history lines and universe lines.
"""
import datetime as dt
import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from insiderdl.collection.models import RawTransaction
from insiderdl.master.symbol_resolver import SymbolResolver

LINE_DATE_FORMAT = '%Y%m%d'
# C0/C1 controls plus Unicode line and paragraph separators
LINE_BREAKING_CHARS = re.compile('[\x00-\x1f\x7f-\x9f\u2028\u2029]')


@dataclass
class AggregationResult:
    per_ticker: Dict[str, List[str]] = field(default_factory=dict)
    universe: List[str] = field(default_factory=list)
    skipped: int = 0
    unresolved: int = 0


def normalize_ticker(ticker: Optional[str]) -> str:
    """
    'NYSE:ABC' -> 'ABC', ' "abc" ' -> 'ABC'. None -> ''.
    """
    if ticker is None:
        return ""
    return ticker.split(':')[-1].replace('"', '').upper().strip()


def format_decimal(value: Optional[Decimal]) -> str:
    # Fixed-point so 1E+3 is written as 1000; absent values stay empty
    if value is None:
        return ""
    return format(value, 'f')


def is_safe_ticker(ticker: str) -> bool:
    """Ticker is used as a file name, so it must not leave the dataset folder."""
    return '/' not in ticker and '\\' not in ticker and '..' not in ticker


def format_fragment(record: RawTransaction) -> str:
    """
    name,shares,pricePerShare,sharesOwnedFollowing with commas removed from the name
    and control / line-separator characters replaced by spaces.
    """
    name = LINE_BREAKING_CHARS.sub(' ', record.name).replace(',', '').strip().lower()
    return ','.join([
        name,
        format_decimal(record.shares),
        format_decimal(record.price_per_share),
        format_decimal(record.shares_owned_following),
    ])


class GroupAggregator:
    """
    Buckets records by normalized ticker.

    Universe lines are produced only when a resolver is given. Without one,
    no universe line is built for any ticker; with one, a ticker that does
    not resolve is left out of the universe but still gets its history line.
    """

    def __init__(self, resolver: Optional[SymbolResolver] = None, logger: Optional[logging.Logger] = None):
        self.resolver = resolver
        self.logger = logger or logging.getLogger(__name__)

    def aggregate(self, records: Iterable[RawTransaction], processing_date: dt.date) -> AggregationResult:
        """
        :param records: Parsed transactions for one day
        :param processing_date: Date written into every line
        :return: AggregationResult with per-ticker lines in input order and universe lines
        """
        date_str = processing_date.strftime(LINE_DATE_FORMAT)
        per_ticker: Dict[str, List[str]] = defaultdict(list)
        result = AggregationResult()

        for record in records:
            ticker = normalize_ticker(record.ticker)
            if not ticker:
                result.skipped += 1
                continue
            if not is_safe_ticker(ticker):
                self.logger.warning(f"Skipping record with unsafe ticker {ticker!r}")
                result.skipped += 1
                continue

            fragment = format_fragment(record)
            per_ticker[ticker].append(f"{date_str},{fragment}")

            if self.resolver is None:
                continue

            security_id = self.resolver.get_security_id(ticker, processing_date)
            if security_id is None:
                result.unresolved += 1
                continue
            result.universe.append(f"{security_id},{ticker},{date_str},{fragment}")

        result.per_ticker = dict(per_ticker)

        if result.skipped:
            self.logger.info(f"Dropped {result.skipped} record(s) without a ticker")
        if result.unresolved:
            self.logger.warning(
                f"{result.unresolved} record(s) on {processing_date} did not resolve to a security_id"
            )
        return result
