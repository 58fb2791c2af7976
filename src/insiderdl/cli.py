import argparse
import datetime as dt
import sys
from typing import List, Optional

from tqdm import tqdm

from insiderdl.storage.config_loader import DEFAULT_CONFIG_PATH, load_config
from insiderdl.update.app import InsiderTradingDownloader

MAX_BACKFILL_DAYS = 30


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download QuiverQuant insider trading data")
    parser.add_argument(
        '--date',
        type=str,
        help='Target date in YYYY-MM-DD format (default: yesterday)'
    )
    parser.add_argument(
        '--backfill-from',
        type=str,
        help=f'Backfill from date (YYYY-MM-DD) to --date. Max {MAX_BACKFILL_DAYS} days.'
    )
    parser.add_argument('--config', type=str, default=DEFAULT_CONFIG_PATH)
    parser.add_argument('--destination', type=str, help='Root folder the data is written to')
    parser.add_argument('--processed', type=str, help='Root folder existing data is read from')
    parser.add_argument('--api-key', type=str, help='QuiverQuant API key (default: VENDOR_AUTH_TOKEN)')
    parser.add_argument('--map-files', type=str, help='Directory with security mapping CSVs')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the daily insider trading download."""
    args = build_parser().parse_args(argv)

    if args.date:
        end_date = dt.datetime.strptime(args.date, '%Y-%m-%d').date()
    else:
        end_date = dt.date.today() - dt.timedelta(days=1)

    if args.backfill_from:
        start_date = dt.datetime.strptime(args.backfill_from, '%Y-%m-%d').date()
        days_diff = (end_date - start_date).days
        if days_diff < 0:
            print(f"Error: --backfill-from ({start_date}) must be before --date ({end_date})")
            return 2
        if days_diff > MAX_BACKFILL_DAYS:
            print(f"Error: Backfill range ({days_diff} days) exceeds max ({MAX_BACKFILL_DAYS} days)")
            return 2
    else:
        start_date = end_date

    config = load_config(
        args.config,
        destination_dir=args.destination,
        processed_dir=args.processed,
        api_key=args.api_key,
        map_files_dir=args.map_files
    )

    dates_to_process = []
    current_date = start_date
    while current_date <= end_date:
        dates_to_process.append(current_date)
        current_date += dt.timedelta(days=1)

    failed = []
    with InsiderTradingDownloader(config) as app:
        # Sequential on purpose: runs for different dates share ticker files
        for target_date in tqdm(dates_to_process, desc="insider trading", disable=len(dates_to_process) == 1):
            if not app.run(target_date):
                failed.append(target_date)

    if failed:
        print(f"Failed dates: {', '.join(d.isoformat() for d in failed)}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
