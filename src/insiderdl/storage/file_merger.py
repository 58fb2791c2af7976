"""
Merge-writes CSV line sets into the insider trading data lake.

Layout:
    {root}/quiver/insidertrading/{ticker}.csv           per-ticker history
    {root}/quiver/insidertrading/universe/{yyyymmdd}.csv per-date universe

Existing lines are read from the processed root and the merged file is
written under the destination root; with a single root this is an in-place
merge. Lines are deduplicated by exact string equality, so two lines for the
same trade that differ in formatting are both kept.
"""
import datetime as dt
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set

from insiderdl.storage.aggregator import LINE_DATE_FORMAT

VENDOR_NAME = "quiver"
DATASET_NAME = "insidertrading"
UNIVERSE_DIR = "universe"


def history_sort_key(line: str):
    # Chronological by the first column; the full line breaks ties so output is deterministic
    date_field = line.split(',', 1)[0]
    return dt.datetime.strptime(date_field, LINE_DATE_FORMAT).date(), line


class FileMerger:

    def __init__(
        self,
        destination_dir: str | Path,
        processed_dir: Optional[str | Path] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        :param destination_dir: Root the merged files are written under
        :param processed_dir: Root existing files are read from (default: destination_dir)
        :param logger: Logger instance
        """
        self.destination_folder = Path(destination_dir) / VENDOR_NAME / DATASET_NAME
        self.universe_folder = self.destination_folder / UNIVERSE_DIR
        processed_root = Path(processed_dir) if processed_dir is not None else Path(destination_dir)
        self.processed_folder = processed_root / VENDOR_NAME / DATASET_NAME
        self.logger = logger or logging.getLogger(__name__)

        self.universe_folder.mkdir(parents=True, exist_ok=True)

    def history_path(self, ticker: str) -> Path:
        return self.destination_folder / f"{ticker.lower()}.csv"

    def universe_path(self, date: dt.date) -> Path:
        return self.universe_folder / f"{date.strftime(LINE_DATE_FORMAT)}.csv"

    def write_history(self, ticker: str, lines: Iterable[str]) -> Path:
        """Merge lines into the ticker's history file, sorted by date."""
        name = f"{ticker.lower()}.csv"
        return self._merge_write(
            existing_path=self.processed_folder / name,
            target_path=self.destination_folder / name,
            new_lines=lines,
            universe=False
        )

    def write_universe(self, date: dt.date, lines: Iterable[str]) -> Path:
        """Merge lines into the date's universe file, sorted as plain strings."""
        name = f"{date.strftime(LINE_DATE_FORMAT)}.csv"
        return self._merge_write(
            existing_path=self.processed_folder / UNIVERSE_DIR / name,
            target_path=self.universe_folder / name,
            new_lines=lines,
            universe=True
        )

    @staticmethod
    def read_lines(path: Path) -> List[str]:
        if not path.exists():
            return []
        # Only \n ends a line; splitlines() would also break on \x0b, \x1c, \u2028 and friends
        with open(path, 'r', encoding='utf-8', newline='') as f:
            lines = (line.rstrip('\r') for line in f.read().split('\n'))
            return [line for line in lines if line]

    def _merge_write(self, existing_path: Path, target_path: Path, new_lines: Iterable[str], universe: bool) -> Path:
        if not target_path.resolve().is_relative_to(self.destination_folder.resolve()):
            raise ValueError(f"Refusing to write outside {self.destination_folder}: {target_path}")

        lines: Set[str] = set(new_lines)
        new_count = len(lines)

        existing = self.read_lines(existing_path)
        lines.update(existing)

        if universe:
            final_lines = sorted(lines)
        else:
            final_lines = sorted(lines, key=history_sort_key)

        target_path.parent.mkdir(parents=True, exist_ok=True)
        with open(target_path, 'w', encoding='utf-8', newline='') as f:
            f.write(''.join(f"{line}\n" for line in final_lines))

        self.logger.debug(
            f"Wrote {target_path}: {len(existing)} existing + {new_count} new -> {len(final_lines)} lines"
        )
        return target_path
