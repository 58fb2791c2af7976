"""
Typed records for the QuiverQuant insider trading feed and the body parser.
"""
import json
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from insiderdl.exceptions import ParseError

VENDOR_DATE_FORMAT = '%Y-%m-%d'


@dataclass(frozen=True)
class RawTransaction:
    date: Optional[dt.date]
    ticker: Optional[str]
    name: str
    shares: Optional[Decimal]
    price_per_share: Optional[Decimal]
    shares_owned_following: Optional[Decimal]


def _to_decimal(value, field_name: str) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ParseError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ParseError(f"Invalid {field_name}: {value!r}")
    if not result.is_finite():
        raise ParseError(f"Invalid {field_name}: {value!r}")
    return result


def _to_date(value) -> Optional[dt.date]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ParseError(f"Invalid Date: {value!r}")
    try:
        return dt.datetime.strptime(value, VENDOR_DATE_FORMAT).date()
    except ValueError as e:
        raise ParseError(f"Invalid Date {value!r}: {e}")


def parse_transactions(raw_body: str) -> List[RawTransaction]:
    """
    Decode a live/insiders response body into RawTransaction records.

    Numbers are decoded as Decimal straight from the JSON text so they keep
    the vendor's formatting ("12.5" stays 12.5, never 12.500000001). Any
    malformed element fails the whole body.

    :param raw_body: JSON array of transaction objects
    :return: Records in response order
    :raises ParseError: If the body or any element cannot be decoded
    """
    try:
        payload = json.loads(raw_body, parse_float=Decimal, parse_int=Decimal)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON response: {e}")

    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON array, got {type(payload).__name__}")

    records = []
    for i, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ParseError(f"Element {i} is not an object: {item!r}")

        ticker = item.get('Ticker')
        if ticker is not None and not isinstance(ticker, str):
            raise ParseError(f"Element {i} has invalid Ticker: {ticker!r}")
        name = item.get('Name')
        if name is not None and not isinstance(name, str):
            raise ParseError(f"Element {i} has invalid Name: {name!r}")

        records.append(RawTransaction(
            date=_to_date(item.get('Date')),
            ticker=ticker,
            name=name or "",
            shares=_to_decimal(item.get('Shares'), 'Shares'),
            price_per_share=_to_decimal(item.get('PricePerShare'), 'PricePerShare'),
            shares_owned_following=_to_decimal(item.get('SharesOwnedFollowing'), 'SharesOwnedFollowing'),
        ))

    return records
