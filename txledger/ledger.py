"""
ledger.py - Event processing engine

process_event() applies one Event to two explicitly passed state containers:
a TransactionIndex and a mapping from client id to ClientBalance. It is the
only code that mutates balances.

The Ledger class owns one index and one balance map and feeds events through
process_event(). Tests that need isolated state can either build a fresh
Ledger or call process_event() with their own containers.

Business-rule failures (insufficient funds, unknown client, unknown or
undisputed transaction) never raise. The event is dropped, the result is
ExecuteResult.REJECTED, and processing continues with the next event.
"""

from __future__ import annotations
from decimal import Decimal, localcontext
from typing import Any, Callable, Dict, Iterable, List, Optional
import sys

from .core import (
    # Types
    Event, TransactionRecord, ClientBalance, ExecuteResult,
    # Constants
    EVENT_DEPOSIT, EVENT_WITHDRAWAL, EVENT_DISPUTE, EVENT_RESOLVE, EVENT_CHARGEBACK,
    EVENT_KINDS, RECORDED_KINDS, AMOUNT_QUANTUM, LEDGER_CONTEXT, ZERO,
    # Helper functions
    round_amount,
)
from .transaction_index import TransactionIndex


# Mapping from client id to that client's balance.
BalanceMap = Dict[int, ClientBalance]

# A handler returns None on success or a short rejection reason.
EventHandler = Callable[[Event, TransactionIndex, BalanceMap], Optional[str]]


# ============================================================================
# EVENT HANDLERS
# ============================================================================

def _apply_deposit(event: Event, index: TransactionIndex, balances: BalanceMap) -> Optional[str]:
    # Deposits are the only events that open an account, even without an amount.
    balance = balances.get(event.client)
    if balance is None:
        balance = balances[event.client] = ClientBalance(event.client)
    if event.amount is None:
        return "missing amount"

    balance.available = round_amount(balance.available + event.amount)
    balance.total = round_amount(balance.total + event.amount)
    return None


def _apply_withdrawal(event: Event, index: TransactionIndex, balances: BalanceMap) -> Optional[str]:
    balance = balances.get(event.client)
    if balance is None:
        return "unknown client"
    if event.amount is None:
        return "missing amount"
    if balance.total - event.amount < ZERO:
        return "insufficient funds"

    balance.available = round_amount(balance.available - event.amount)
    balance.total = round_amount(balance.total - event.amount)
    return None


def _apply_dispute(event: Event, index: TransactionIndex, balances: BalanceMap) -> Optional[str]:
    balance = balances.get(event.client)
    if balance is None:
        return "unknown client"
    record = index.find_mutable(event.tx)
    if record is None:
        return "transaction not found"
    if record.amount is None:
        return "transaction has no amount"

    record.disputed = True
    amount = record.amount
    if record.kind == EVENT_DEPOSIT:
        balance.available = round_amount(balance.available - amount)
        balance.held = round_amount(balance.held + amount)
    else:
        balance.available = round_amount(balance.available + amount)
        balance.held = round_amount(balance.held - amount)
    return None


def _apply_resolve(event: Event, index: TransactionIndex, balances: BalanceMap) -> Optional[str]:
    balance = balances.get(event.client)
    if balance is None:
        return "unknown client"
    record = index.find_mutable(event.tx)
    if record is None:
        return "transaction not found"
    if not record.disputed:
        return "transaction not disputed"

    amount = record.amount
    if record.kind == EVENT_DEPOSIT:
        balance.available = round_amount(balance.available + amount)
        balance.held = round_amount(balance.held - amount)
    else:
        balance.available = round_amount(balance.available - amount)
        balance.held = round_amount(balance.held + amount)
    record.disputed = False
    return None


def _apply_chargeback(event: Event, index: TransactionIndex, balances: BalanceMap) -> Optional[str]:
    balance = balances.get(event.client)
    if balance is None:
        return "unknown client"
    record = index.find_mutable(event.tx)
    if record is None:
        return "transaction not found"
    if not record.disputed:
        return "transaction not disputed"

    # The disputed flag stays set: a repeated chargeback applies again.
    amount = record.amount
    if record.kind == EVENT_DEPOSIT:
        balance.total = round_amount(balance.total - amount)
        balance.held = round_amount(balance.held - amount)
    else:
        balance.total = round_amount(balance.total + amount)
        balance.held = round_amount(balance.held + amount)
    balance.locked = True
    return None


_HANDLERS: Dict[str, EventHandler] = {
    EVENT_DEPOSIT: _apply_deposit,
    EVENT_WITHDRAWAL: _apply_withdrawal,
    EVENT_DISPUTE: _apply_dispute,
    EVENT_RESOLVE: _apply_resolve,
    EVENT_CHARGEBACK: _apply_chargeback,
}


def _report(event: Event, result: ExecuteResult, reason: str) -> None:
    icon = "✗" if result == ExecuteResult.REJECTED else "⚠️ "
    print(
        f"{icon} {result.name}: tx {event.tx}, client {event.client}, {event.kind}: {reason}",
        file=sys.stderr,
    )


def process_event(
    event: Event,
    index: TransactionIndex,
    balances: BalanceMap,
    verbose: bool = False
) -> ExecuteResult:
    """
    Apply a single event to the transaction index and the balance map.

    Deposits and withdrawals are recorded in the index first, before any
    balance check, so a withdrawal rejected for insufficient funds can still
    be disputed later.

    Args:
        event: Decoded input event
        index: Transaction index, mutated in place
        balances: Client balances, mutated in place
        verbose: Print a line to stderr for each rejected or ignored event

    Returns:
        ExecuteResult.APPLIED if the event took effect
        ExecuteResult.REJECTED if a precondition failed and the event was dropped
        ExecuteResult.IGNORED if the event kind is unknown
    """
    if event.kind not in EVENT_KINDS:
        if verbose:
            _report(event, ExecuteResult.IGNORED, "unknown event kind")
        return ExecuteResult.IGNORED

    if event.kind in RECORDED_KINDS:
        index.insert(TransactionRecord.from_event(event))

    with localcontext(LEDGER_CONTEXT):
        reason = _HANDLERS[event.kind](event, index, balances)
    if reason is not None:
        if verbose:
            _report(event, ExecuteResult.REJECTED, reason)
        return ExecuteResult.REJECTED
    return ExecuteResult.APPLIED


# ============================================================================
# LEDGER
# ============================================================================

class Ledger:
    """
    Owner of one transaction index and one client balance map.

    Thread Safety:
        Not thread-safe. Events must be fed one at a time from a single thread.

    Example:
        ledger = Ledger("main")
        ledger.process(deposit(1, 1, "5.0"))
        ledger.process(withdrawal(1, 2, "1.0"))
        ledger.process(dispute(1, 2))
        ledger.get_balance(1)  # available=5.0000 held=-1.0000 total=4.0000
    """

    def __init__(self, name: str = "main", verbose: bool = False):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            verbose: Print rejected and ignored events to stderr (default: False)
        """
        self.name = name
        self.verbose = verbose
        self.index = TransactionIndex()
        self.balances: BalanceMap = {}
        self._results: Dict[ExecuteResult, int] = {result: 0 for result in ExecuteResult}

    def process(self, event: Event) -> ExecuteResult:
        """Apply one event. See process_event()."""
        result = process_event(event, self.index, self.balances, verbose=self.verbose)
        self._results[result] += 1
        return result

    def process_all(self, events: Iterable[Event]) -> int:
        """
        Apply events in order until the iterable is exhausted.

        Exceptions raised by the iterable itself (e.g. a decode error from the
        reader) propagate; events already applied stay applied.

        Returns:
            Number of events consumed
        """
        count = 0
        for event in events:
            self.process(event)
            count += 1
        return count

    def get_balance(self, client: int) -> ClientBalance:
        """
        Get a copy of a client's balance.

        Unknown clients get an all-zero balance. They are not added to the
        ledger by this call.
        """
        balance = self.balances.get(client)
        if balance is None:
            return ClientBalance(client)
        return balance.copy()

    def list_clients(self) -> List[int]:
        """Return client ids in the order their accounts were opened."""
        return list(self.balances)

    def verify_balances(self, tolerance: Decimal = AMOUNT_QUANTUM) -> Dict[str, Any]:
        """
        Check that total == available + held for every client.

        Args:
            tolerance: Maximum allowed difference. Defaults to one unit of
                       the fourth decimal place.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every client is consistent
            - 'clients': int - Number of clients checked
            - 'discrepancies': List[Dict] - client, total, expected, difference

        Example:
            result = ledger.verify_balances()
            assert result['valid'], f"Balance mismatch: {result['discrepancies']}"
        """
        discrepancies = []
        for client, balance in self.balances.items():
            if balance.is_consistent(tolerance):
                continue
            with localcontext(LEDGER_CONTEXT):
                expected = balance.available + balance.held
                difference = abs(balance.total - expected)
            discrepancies.append({
                'client': client,
                'total': balance.total,
                'expected': expected,
                'difference': difference,
            })

        return {
            'valid': len(discrepancies) == 0,
            'clients': len(self.balances),
            'discrepancies': discrepancies,
        }

    def get_stats(self) -> Dict[str, int]:
        """
        Counters describing what the ledger has processed so far.

        Returns:
            Dictionary with:
            - 'events': Events passed to process()
            - 'applied', 'rejected', 'ignored': Events per ExecuteResult
            - 'transactions': Records in the transaction index
            - 'clients': Accounts opened
        """
        stats = {result.value: count for result, count in self._results.items()}
        stats['events'] = sum(self._results.values())
        stats['transactions'] = len(self.index)
        stats['clients'] = len(self.balances)
        return stats

    def __repr__(self) -> str:
        return f"Ledger({self.name!r}, {len(self.balances)} clients, {len(self.index)} transactions)"
