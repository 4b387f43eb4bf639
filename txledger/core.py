"""
Core types and pure functions for the transaction ledger.

This module provides the foundational data structures for the engine:
1. Constants: decimal precision, identifier bounds, event kinds
2. Enums: ExecuteResult
3. Exceptions: LedgerError and RecordDecodeError
4. Data structures: Event, TransactionRecord, ClientBalance
5. Event factories: deposit(), withdrawal(), dispute(), resolve(), chargeback()

Nothing in this module mutates ledger state. The only place balances change
is txledger.ledger.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Optional, Union


# ============================================================================
# CONSTANTS
# ============================================================================

# Amounts carry four fractional digits. Every addition and subtraction is
# rounded back to this precision immediately, so rounding error compounds
# step by step rather than once at the end.
DECIMAL_PLACES = 4
AMOUNT_QUANTUM = Decimal(10) ** -DECIMAL_PLACES

# Half away from zero (Decimal's ROUND_HALF_UP rounds magnitudes).
AMOUNT_ROUNDING = ROUND_HALF_UP

# Amounts must stay below 10**28 in magnitude. Under LEDGER_CONTEXT, balances
# built from such amounts keep all four fractional digits when quantized.
MAX_AMOUNT = Decimal(10) ** 28

# All ledger arithmetic runs under this context, never the caller's.
# The default context keeps only 28 significant digits.
LEDGER_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)

# Client ids are unsigned 16-bit, transaction ids unsigned 32-bit.
MAX_CLIENT_ID = 65535
MAX_TX_ID = 4294967295

# Event kind constants (strings, as they appear in the input).
EVENT_DEPOSIT = "deposit"
EVENT_WITHDRAWAL = "withdrawal"
EVENT_DISPUTE = "dispute"
EVENT_RESOLVE = "resolve"
EVENT_CHARGEBACK = "chargeback"

# Kinds that create a TransactionRecord in the index.
RECORDED_KINDS = frozenset({EVENT_DEPOSIT, EVENT_WITHDRAWAL})

EVENT_KINDS = frozenset({
    EVENT_DEPOSIT,
    EVENT_WITHDRAWAL,
    EVENT_DISPUTE,
    EVENT_RESOLVE,
    EVENT_CHARGEBACK,
})

ZERO = Decimal("0")


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of applying one event.

    APPLIED: The event's balance and record effects were applied.
    REJECTED: A precondition failed (insufficient funds, unknown client,
              unknown or undisputed transaction). The event was dropped and
              the stream continues.
    IGNORED: The event kind is not one the engine knows.
    """
    APPLIED = "applied"
    REJECTED = "rejected"
    IGNORED = "ignored"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class RecordDecodeError(LedgerError):
    """Raised when an input record cannot be decoded into an Event."""

    def __init__(self, message: str, line_num: Optional[int] = None):
        self.line_num = line_num
        if line_num is not None:
            message = f"line {line_num}: {message}"
        super().__init__(message)


# ============================================================================
# ROUNDING
# ============================================================================

AmountLike = Union[Decimal, int, str]


def to_amount(value: AmountLike) -> Decimal:
    """Convert an int, str or Decimal into a Decimal without rounding it."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("amounts must not be floats, pass a str or Decimal")
    return Decimal(str(value))


def round_amount(value: Decimal) -> Decimal:
    """
    Round a value to four fractional digits, half away from zero.

    Example:
        round_amount(Decimal("11.33336"))  # Decimal("11.3334")
        round_amount(Decimal("-0.00005"))  # Decimal("-0.0001")
    """
    return value.quantize(AMOUNT_QUANTUM, rounding=AMOUNT_ROUNDING, context=LEDGER_CONTEXT)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Event:
    """
    One decoded input record.

    Attributes:
        kind: Event kind (deposit, withdrawal, dispute, resolve, chargeback).
              Unknown kinds are allowed here and ignored by the engine.
        client: Client id, 0..65535.
        tx: Transaction id, 0..4294967295. For dispute, resolve and
            chargeback this is the id of the transaction being referenced.
        amount: Amount for deposits and withdrawals, None otherwise.
    """
    kind: str
    client: int
    tx: int
    amount: Optional[Decimal] = None

    def __post_init__(self):
        if isinstance(self.client, bool) or not isinstance(self.client, int):
            raise ValueError(f"client must be int, got {type(self.client).__name__}")
        if not 0 <= self.client <= MAX_CLIENT_ID:
            raise ValueError(f"client {self.client} out of range 0..{MAX_CLIENT_ID}")
        if isinstance(self.tx, bool) or not isinstance(self.tx, int):
            raise ValueError(f"tx must be int, got {type(self.tx).__name__}")
        if not 0 <= self.tx <= MAX_TX_ID:
            raise ValueError(f"tx {self.tx} out of range 0..{MAX_TX_ID}")
        if self.amount is not None:
            if not isinstance(self.amount, Decimal):
                raise ValueError(f"amount must be Decimal, got {type(self.amount).__name__}")
            if not self.amount.is_finite():
                raise ValueError(f"amount must be finite, got {self.amount}")
            if self.amount.copy_abs() >= MAX_AMOUNT:
                raise ValueError(f"amount {self.amount} out of range, must be below 1E+28")

    def __repr__(self) -> str:
        amount = "" if self.amount is None else f" {self.amount}"
        return f"Event({self.kind} client={self.client} tx={self.tx}{amount})"


@dataclass(slots=True)
class TransactionRecord:
    """
    A deposit or withdrawal remembered so later disputes can refer to it.

    Owned by the TransactionIndex. The engine changes `disputed` through the
    reference returned by TransactionIndex.find_mutable().
    """
    tx: int
    client: int
    kind: str
    amount: Optional[Decimal]
    disputed: bool = False

    @classmethod
    def from_event(cls, event: Event) -> TransactionRecord:
        return cls(tx=event.tx, client=event.client, kind=event.kind, amount=event.amount)


@dataclass(slots=True)
class ClientBalance:
    """
    Balance state of one client account.

    Attributes:
        client: Client id.
        available: Funds the client may withdraw.
        held: Funds frozen by open disputes. Negative while a withdrawal is
              under dispute.
        total: available + held, maintained separately and rounded per step.
        locked: Set by a chargeback. Reported only, not enforced.
    """
    client: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    total: Decimal = ZERO
    locked: bool = False

    def is_consistent(self, tolerance: Decimal = AMOUNT_QUANTUM) -> bool:
        """True if total matches available + held within tolerance."""
        with localcontext(LEDGER_CONTEXT):
            return abs(self.total - (self.available + self.held)) <= tolerance

    def copy(self) -> ClientBalance:
        return ClientBalance(self.client, self.available, self.held, self.total, self.locked)


# ============================================================================
# EVENT FACTORIES
# ============================================================================

def deposit(client: int, tx: int, amount: Optional[AmountLike]) -> Event:
    """Create a deposit event. amount=None builds an amount-less deposit."""
    return Event(EVENT_DEPOSIT, client, tx, None if amount is None else to_amount(amount))


def withdrawal(client: int, tx: int, amount: Optional[AmountLike]) -> Event:
    """Create a withdrawal event."""
    return Event(EVENT_WITHDRAWAL, client, tx, None if amount is None else to_amount(amount))


def dispute(client: int, tx: int) -> Event:
    """Create a dispute against transaction `tx`."""
    return Event(EVENT_DISPUTE, client, tx)


def resolve(client: int, tx: int) -> Event:
    """Create a resolve for a disputed transaction `tx`."""
    return Event(EVENT_RESOLVE, client, tx)


def chargeback(client: int, tx: int) -> Event:
    """Create a chargeback for a disputed transaction `tx`."""
    return Event(EVENT_CHARGEBACK, client, tx)
