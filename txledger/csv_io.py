"""
csv_io.py - CSV decoding of events and encoding of client balances

Input files have a header row naming the columns type, client, tx and
amount. Columns are matched by name, surrounding whitespace is trimmed from
every header and value, and columns with other names are ignored. The amount
column may be missing entirely or left empty for dispute, resolve and
chargeback rows.

Any record that cannot be decoded raises RecordDecodeError. Decoding errors
are fatal for the whole run, unlike business-rule failures in the engine.
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, TextIO, Union
import csv
import os

from .core import Event, ClientBalance, RecordDecodeError, LEDGER_CONTEXT, round_amount


INPUT_FIELDS = ("type", "client", "tx", "amount")
REQUIRED_INPUT_FIELDS = ("type", "client", "tx")
OUTPUT_FIELDS = ("client", "available", "held", "total", "locked")


# ============================================================================
# DECODING
# ============================================================================

def _parse_id(row: Mapping[str, Optional[str]], field: str, line_num: Optional[int]) -> int:
    value = row.get(field)
    if value is None:
        raise RecordDecodeError(f"missing field '{field}'", line_num)
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        raise RecordDecodeError(f"invalid {field} {value!r}: expected an unsigned integer", line_num)
    return int(text)


def _parse_amount(row: Mapping[str, Optional[str]], line_num: Optional[int]) -> Optional[Decimal]:
    value = row.get("amount")
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        raise RecordDecodeError(f"invalid amount {value!r}", line_num) from None


def decode_row(row: Mapping[str, Optional[str]], line_num: Optional[int] = None) -> Event:
    """
    Decode one record, given as a mapping of column name to raw cell text.

    Raises:
        RecordDecodeError: If a required field is missing, an id is not an
            unsigned integer in range, or the amount is not a finite decimal.
    """
    kind = row.get("type")
    if kind is None:
        raise RecordDecodeError("missing field 'type'", line_num)
    client = _parse_id(row, "client", line_num)
    tx = _parse_id(row, "tx", line_num)
    amount = _parse_amount(row, line_num)
    try:
        return Event(kind.strip(), client, tx, amount)
    except ValueError as e:
        raise RecordDecodeError(str(e), line_num) from None


def _records(reader) -> Iterator[List[str]]:
    try:
        yield from reader
    except UnicodeDecodeError as e:
        raise RecordDecodeError(f"input is not valid UTF-8: {e}") from None


def read_events(stream: TextIO) -> Iterator[Event]:
    """
    Lazily decode events from an open CSV stream.

    Only one record is held in memory at a time. Blank lines are skipped.
    A missing trailing amount cell is treated as an absent amount.

    Raises:
        RecordDecodeError: On a bad header, the first undecodable record, or
            bytes that are not valid UTF-8
        csv.Error: If the stream is not well-formed CSV
    """
    reader = csv.reader(stream)
    records = _records(reader)
    header = next(records, None)
    if header is None:
        return

    columns = [name.strip() for name in header]
    missing = [name for name in REQUIRED_INPUT_FIELDS if name not in columns]
    if missing:
        raise RecordDecodeError(f"header is missing column(s): {', '.join(missing)}", reader.line_num)
    positions = {name: columns.index(name) for name in INPUT_FIELDS if name in columns}

    for cells in records:
        if not cells:
            continue
        if len(cells) > len(columns):
            raise RecordDecodeError(
                f"found record with {len(cells)} fields, but the header has {len(columns)}",
                reader.line_num,
            )
        row: Dict[str, Optional[str]] = {
            name: cells[pos] if pos < len(cells) else None
            for name, pos in positions.items()
        }
        yield decode_row(row, reader.line_num)


def read_events_from_path(path: Union[str, os.PathLike]) -> Iterator[Event]:
    """Open `path` and yield its events. The file is closed when iteration ends."""
    with open(path, newline="", encoding="utf-8") as f:
        yield from read_events(f)


# ============================================================================
# ENCODING
# ============================================================================

def format_amount(value: Decimal) -> str:
    """
    Render an amount with up to four fractional digits.

    Trailing zeros are dropped but one fractional digit is always kept, and
    negative zero prints as zero.

    Example:
        format_amount(Decimal("2.0000"))   # "2.0"
        format_amount(Decimal("11.3334"))  # "11.3334"
        format_amount(Decimal("-0.0000"))  # "0.0"
    """
    rounded = round_amount(value)
    if rounded.is_zero():
        return "0.0"
    text = f"{rounded.normalize(LEDGER_CONTEXT):f}"
    if "." not in text:
        text += ".0"
    return text


def encode_balance(balance: ClientBalance) -> Dict[str, str]:
    """Return the output row for one client, keyed by OUTPUT_FIELDS."""
    return {
        "client": str(balance.client),
        "available": format_amount(balance.available),
        "held": format_amount(balance.held),
        "total": format_amount(balance.total),
        "locked": "true" if balance.locked else "false",
    }


def write_balances(balances: Iterable[ClientBalance], stream: TextIO) -> int:
    """
    Write a header and one row per client to `stream`.

    Returns:
        Number of client rows written
    """
    writer = csv.DictWriter(stream, fieldnames=OUTPUT_FIELDS, lineterminator="\n")
    writer.writeheader()
    count = 0
    for balance in balances:
        writer.writerow(encode_balance(balance))
        count += 1
    return count
