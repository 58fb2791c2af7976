"""
Symbol -> security identifier resolution.

The downloader only needs SymbolResolver.get_security_id(symbol, day). The
bundled LocalSecurityMaster answers it from a local directory of mapping
CSVs; whether that directory exists decides if universe files are built.

Mapping file columns (one or more *.csv files in the directory):
    security_id,symbol,start_date,end_date
with dates as YYYY-MM-DD and an empty end_date for a still-active listing.
"""
import datetime as dt
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

import polars as pl

from insiderdl.exceptions import ResolutionUnavailableError

MAP_COLUMNS = ['security_id', 'symbol', 'start_date', 'end_date']


class SymbolResolver(Protocol):
    def get_security_id(self, symbol: str, day: dt.date) -> Optional[str]:
        ...


class LocalSecurityMaster:
    """
    Resolves symbols against a point-in-time mapping table loaded with polars.

    A symbol may have been used by several securities over time (ticker
    reuse after a delisting), so the lookup is filtered on the listing
    interval and the most recent start_date wins.
    """

    def __init__(self, map_files_dir: Optional[str | Path], logger: Optional[logging.Logger] = None):
        """
        :param map_files_dir: Directory holding mapping CSVs, or None if not configured
        :param logger: Logger instance
        """
        self.map_files_dir = Path(map_files_dir) if map_files_dir is not None else None
        self.logger = logger or logging.getLogger(__name__)
        self._master_tb: Optional[pl.DataFrame] = None
        self._cache: Dict[Tuple[str, dt.date], Optional[str]] = {}

    def is_available(self) -> bool:
        return self.map_files_dir is not None and self.map_files_dir.is_dir()

    @property
    def master_tb(self) -> pl.DataFrame:
        if self._master_tb is None:
            self._master_tb = self.load()
        return self._master_tb

    def load(self) -> pl.DataFrame:
        """
        Read every mapping CSV into one table.

        :return: DataFrame with security_id, symbol (upper-case), start_date, end_date
        :raises ResolutionUnavailableError: If the mapping directory does not exist
        """
        if not self.is_available():
            raise ResolutionUnavailableError(
                f"Security mapping directory not found: {self.map_files_dir}"
            )

        files = sorted(self.map_files_dir.glob('*.csv'))
        if not files:
            self.logger.warning(f"No mapping files in {self.map_files_dir}")
            return pl.DataFrame(
                schema={
                    'security_id': pl.Utf8,
                    'symbol': pl.Utf8,
                    'start_date': pl.Date,
                    'end_date': pl.Date,
                }
            )

        frames = []
        for path in files:
            df = pl.read_csv(path, infer_schema_length=0)
            missing = [c for c in MAP_COLUMNS if c not in df.columns]
            if missing:
                raise ValueError(f"Mapping file {path} is missing columns {missing}")
            frames.append(df.select(MAP_COLUMNS))

        master = pl.concat(frames).with_columns([
            pl.col('security_id').str.strip_chars(),
            pl.col('symbol').str.strip_chars().str.to_uppercase(),
            pl.col('start_date').str.strptime(pl.Date, '%Y-%m-%d', strict=True),
            pl.col('end_date').str.strptime(pl.Date, '%Y-%m-%d', strict=False),
        ])
        self.logger.info(f"Loaded {len(master)} security mappings from {len(files)} file(s)")
        return master

    def get_security_id(self, symbol: str, day: dt.date) -> Optional[str]:
        """
        :param symbol: Normalized ticker (e.g. 'ABC')
        :param day: As-of date
        :return: Security identifier active for symbol on day, or None
        """
        key = (symbol.upper(), day)
        if key in self._cache:
            return self._cache[key]

        match = (
            self.master_tb
            .filter(
                (pl.col('symbol') == key[0])
                & (pl.col('start_date') <= day)
                & (pl.col('end_date').is_null() | (pl.col('end_date') >= day))
            )
            .sort('start_date', descending=True)
            .select('security_id')
            .head(1)
        )

        security_id = None if match.is_empty() else match.item()
        if security_id is None:
            self.logger.debug(f"No security_id for {symbol} on {day}")
        self._cache[key] = security_id
        return security_id
