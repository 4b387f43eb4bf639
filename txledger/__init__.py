"""
txledger - Client balance engine for deposit, withdrawal and dispute streams

Reads an ordered stream of transaction events and computes, for every client,
the available, held and total balance plus a locked flag.

Usage:
    from txledger import Ledger, deposit, withdrawal, dispute

    ledger = Ledger("main")
    ledger.process(deposit(1, 1, "5.0"))
    ledger.process(withdrawal(1, 2, "1.0"))
    ledger.process(dispute(1, 2))

    balance = ledger.get_balance(1)
    # available=5.0000, held=-1.0000, total=4.0000, locked=False

    # From a CSV file
    from txledger import read_events_from_path, write_balances
    ledger.process_all(read_events_from_path("transactions.csv"))
    write_balances(ledger.balances.values(), sys.stdout)
"""

__version__ = '1.0.0'

# Core types
from .core import (
    Event,
    TransactionRecord,
    ClientBalance,
    ExecuteResult,
    LedgerError,
    RecordDecodeError,
    round_amount,
    to_amount,
    deposit,
    withdrawal,
    dispute,
    resolve,
    chargeback,
    DECIMAL_PLACES,
    AMOUNT_QUANTUM,
    AMOUNT_ROUNDING,
    LEDGER_CONTEXT,
    MAX_AMOUNT,
    MAX_CLIENT_ID,
    MAX_TX_ID,
    EVENT_DEPOSIT,
    EVENT_WITHDRAWAL,
    EVENT_DISPUTE,
    EVENT_RESOLVE,
    EVENT_CHARGEBACK,
    EVENT_KINDS,
    RECORDED_KINDS,
)

# Transaction index
from .transaction_index import TransactionIndex

# Engine
from .ledger import Ledger, BalanceMap, process_event

# CSV input/output
from .csv_io import (
    read_events,
    read_events_from_path,
    decode_row,
    write_balances,
    encode_balance,
    format_amount,
    INPUT_FIELDS,
    OUTPUT_FIELDS,
)

__all__ = [
    # Core
    'Event', 'TransactionRecord', 'ClientBalance', 'ExecuteResult',
    'LedgerError', 'RecordDecodeError',
    'round_amount', 'to_amount',
    'deposit', 'withdrawal', 'dispute', 'resolve', 'chargeback',
    'DECIMAL_PLACES', 'AMOUNT_QUANTUM', 'AMOUNT_ROUNDING', 'LEDGER_CONTEXT',
    'MAX_AMOUNT', 'MAX_CLIENT_ID', 'MAX_TX_ID',
    'EVENT_DEPOSIT', 'EVENT_WITHDRAWAL', 'EVENT_DISPUTE', 'EVENT_RESOLVE',
    'EVENT_CHARGEBACK', 'EVENT_KINDS', 'RECORDED_KINDS',
    # Index
    'TransactionIndex',
    # Engine
    'Ledger', 'BalanceMap', 'process_event',
    # CSV
    'read_events', 'read_events_from_path', 'decode_row',
    'write_balances', 'encode_balance', 'format_amount',
    'INPUT_FIELDS', 'OUTPUT_FIELDS',
]
