"""
txledger command-line interface

Usage:
    txledger transactions.csv > accounts.csv
    txledger -v transactions.csv       # report dropped events on stderr
    python -m txledger transactions.csv
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, TextIO
import argparse
import csv
import sys

from . import __version__
from .core import LedgerError
from .csv_io import read_events_from_path, write_balances
from .ledger import Ledger


USAGE = "Usage:\n    txledger csv_filename.csv"


class UsageError(Exception):
    """Raised when the command line cannot be parsed."""
    pass


class _ArgumentParser(argparse.ArgumentParser):
    # argparse exits with status 2 on bad arguments; the program exits 1
    # after printing its own usage text instead.
    def error(self, message: str) -> None:
        raise UsageError(message)


@dataclass(frozen=True, slots=True)
class CliConfig:
    """
    Parsed command-line settings.

    Attributes:
        filename: Path of the input CSV file.
        verbose: Report rejected and ignored events on stderr.
    """
    filename: str
    verbose: bool = False

    @classmethod
    def from_args(cls, argv: List[str]) -> CliConfig:
        """
        Parse arguments (without the program name).

        Raises:
            UsageError: If the input filename is missing or an option is unknown
        """
        parser = _ArgumentParser(
            prog="txledger",
            description="Compute client account balances from a CSV of transactions.",
        )
        parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
        parser.add_argument("filename", help="Input CSV with columns type, client, tx, amount")
        parser.add_argument("-v", "--verbose", action="store_true",
                            help="Print rejected and ignored events to stderr")
        args = parser.parse_args(argv)
        return cls(filename=args.filename, verbose=args.verbose)


def run(config: CliConfig, out: TextIO) -> Ledger:
    """
    Process the input file and write client balances to `out`.

    Output is written only after the whole input has been processed, so a
    decode error part way through leaves `out` untouched.

    Raises:
        OSError: If the input file cannot be read
        csv.Error: If the input is not well-formed CSV
        LedgerError: If a record cannot be decoded
    """
    ledger = Ledger(name=config.filename, verbose=config.verbose)
    ledger.process_all(read_events_from_path(config.filename))
    write_balances(ledger.balances.values(), out)
    return ledger


def main(argv: Optional[List[str]] = None) -> int:
    """Program entry point. Returns the process exit status."""
    if argv is None:
        argv = sys.argv[1:]

    try:
        config = CliConfig.from_args(argv)
    except UsageError:
        print(USAGE)
        return 1

    try:
        run(config, sys.stdout)
    except (OSError, csv.Error, LedgerError) as e:
        print(f"error while running the application: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
