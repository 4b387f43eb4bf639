"""
transaction_index.py - Index of accepted deposits and withdrawals

Disputes, resolves and chargebacks reference an earlier transaction by id.
The TransactionIndex keeps every deposit and withdrawal the engine has seen
so those references can be matched to the original record.

Records are never removed. Memory grows with the number of deposits and
withdrawals in the stream.
"""

from __future__ import annotations
from typing import Dict, Iterator, Optional

from .core import TransactionRecord


class TransactionIndex:
    """
    Transaction records keyed by transaction id.

    Lookups are O(1). Iteration yields records in ascending tx order, which is
    only useful for inspection; no engine rule depends on it.

    Thread Safety:
        Not thread-safe. The index is owned by a single processing loop.

    Example:
        index = TransactionIndex()
        index.insert(TransactionRecord(tx=1, client=1, kind="deposit", amount=Decimal("5")))
        record = index.find_mutable(1)
        record.disputed = True
        assert index.find_mutable(1).disputed
    """

    def __init__(self):
        self._records: Dict[int, TransactionRecord] = {}

    def insert(self, record: TransactionRecord) -> None:
        """
        Add a record to the index.

        Transaction ids are expected to be unique in the input. Inserting a
        duplicate id replaces the earlier record.
        """
        self._records[record.tx] = record

    def find_mutable(self, tx: int) -> Optional[TransactionRecord]:
        """
        Return the live record for `tx`, or None if it was never indexed.

        The returned object is the stored record itself, so changes to it
        (e.g. the disputed flag) persist. A miss never inserts anything.
        """
        return self._records.get(tx)

    def __contains__(self, tx: int) -> bool:
        return tx in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TransactionRecord]:
        for tx in sorted(self._records):
            yield self._records[tx]

    def disputed(self) -> Iterator[TransactionRecord]:
        """Yield the records currently flagged as disputed, in tx order."""
        return (record for record in self if record.disputed)

    def __repr__(self) -> str:
        return f"TransactionIndex({len(self._records)} records)"
