"""
Read persisted insider trading files back into Polars DataFrames.

Meant for inspection and validation of the data lake, e.g.

    >>> df = read_history('data/quiver/insidertrading/abc.csv')
    >>> df.filter(pl.col('shares') > 0)
"""
from pathlib import Path

import polars as pl

from insiderdl.storage.file_merger import FileMerger

HISTORY_COLUMNS = ['date', 'name', 'shares', 'price_per_share', 'shares_owned_following']
UNIVERSE_COLUMNS = ['security_id', 'ticker'] + HISTORY_COLUMNS
NUMERIC_COLUMNS = ['shares', 'price_per_share', 'shares_owned_following']


def _lines_to_frame(path: str | Path, columns: list) -> pl.DataFrame:
    lines = FileMerger.read_lines(Path(path))

    rows = []
    for line in lines:
        values = line.split(',')
        if len(values) != len(columns):
            raise ValueError(
                f"Expected {len(columns)} fields in {path}, got {len(values)}: {line!r}"
            )
        rows.append(values)

    df = pl.DataFrame(rows, schema={c: pl.Utf8 for c in columns}, orient='row')

    return df.with_columns(
        [pl.col('date').str.strptime(pl.Date, '%Y%m%d', strict=True)]
        + [
            pl.when(pl.col(c) == "").then(None).otherwise(pl.col(c)).cast(pl.Float64).alias(c)
            for c in NUMERIC_COLUMNS
        ]
    )


def read_history(path: str | Path) -> pl.DataFrame:
    """
    Load a per-ticker history file.

    :param path: Path to {ticker}.csv (missing file -> empty frame)
    :return: DataFrame with date, name, shares, price_per_share, shares_owned_following
    """
    return _lines_to_frame(path, HISTORY_COLUMNS)


def read_universe(path: str | Path) -> pl.DataFrame:
    """
    Load a per-date universe file.

    :param path: Path to universe/{yyyymmdd}.csv (missing file -> empty frame)
    :return: DataFrame with security_id, ticker and the history columns
    """
    return _lines_to_frame(path, UNIVERSE_COLUMNS)
