"""
Idempotency Conformance Tests

INVARIANT: A resolve or chargeback aimed at a record whose disputed flag is
false changes nothing.

    ∀ record R with R.disputed = False, ∀ client c:
        process(resolve(c, R.tx)) = REJECTED, state unchanged
        process(chargeback(c, R.tx)) = REJECTED, state unchanged

In particular, replaying a resolve is always a no-op.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from copy import deepcopy

from txledger import (
    Ledger, ExecuteResult, deposit, withdrawal, dispute, resolve, chargeback,
)

from .strategies import CLIENTS, amounts, event_streams


def _snapshot(ledger: Ledger):
    return deepcopy(ledger.balances), [(r.tx, r.disputed) for r in ledger.index]


class TestIdempotencyProperties:
    """Property-based idempotency tests."""

    @given(event_streams(), st.sampled_from(CLIENTS))
    @settings(max_examples=100)
    def test_undisputed_records_ignore_resolve_and_chargeback(self, events, client):
        """
        PROPERTY: resolve/chargeback on any undisputed record is a no-op.
        """
        ledger = Ledger("test", verbose=False)
        ledger.process_all(events)

        for record in list(ledger.index):
            if record.disputed:
                continue
            before = _snapshot(ledger)
            assert ledger.process(resolve(client, record.tx)) == ExecuteResult.REJECTED
            assert ledger.process(chargeback(client, record.tx)) == ExecuteResult.REJECTED
            assert _snapshot(ledger) == before

    @given(amounts(), st.integers(min_value=1, max_value=5))
    @settings(max_examples=50)
    def test_repeated_resolve_applies_once(self, amount, num_repeats):
        """
        PROPERTY: Resolving N times releases the funds exactly once.
        """
        ledger = Ledger("test", verbose=False)
        ledger.process(deposit(1, 1, amount))
        ledger.process(dispute(1, 1))

        results = [ledger.process(resolve(1, 1)) for _ in range(num_repeats + 1)]

        assert results[0] == ExecuteResult.APPLIED
        assert all(r == ExecuteResult.REJECTED for r in results[1:])
        balance = ledger.get_balance(1)
        assert balance.available == amount
        assert balance.held == 0
        assert balance.total == amount


class TestIdempotencyExamples:
    """Specific idempotency scenarios."""

    def test_resolve_before_dispute(self):
        """A resolve that arrives before any dispute is dropped."""
        ledger = Ledger("test", verbose=False)
        ledger.process_all([deposit(1, 1, "5.0"), deposit(1, 2, "3.0"), resolve(1, 2)])
        balance = ledger.get_balance(1)
        assert (balance.available, balance.held, balance.total, balance.locked) == (8, 0, 8, False)

    def test_dispute_resolve_cycles(self):
        """Dispute and resolve can alternate; each pair nets to zero."""
        ledger = Ledger("test", verbose=False)
        ledger.process(withdrawal(1, 1, "1.0"))
        ledger.process(deposit(1, 2, "4.0"))
        for _ in range(3):
            assert ledger.process(dispute(1, 2)) == ExecuteResult.APPLIED
            assert ledger.process(resolve(1, 2)) == ExecuteResult.APPLIED
        balance = ledger.get_balance(1)
        assert (balance.available, balance.held, balance.total) == (4, 0, 4)
