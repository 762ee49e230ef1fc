"""Console helpers shared by the contract commands."""

from __future__ import annotations

import re
import sys
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

DEFAULT_KEY_COL_WIDTH = 12
STORAGE_DEPOSIT_KEY = "Storage Total Deposit"
MAX_KEY_COL_WIDTH = len(STORAGE_DEPOSIT_KEY) + 1

_HEX = re.compile(r"(?:[0-9a-fA-F]{2})*")


class Verbosity(Enum):
    """How much a command prints."""

    QUIET = "quiet"
    DEFAULT = "default"
    VERBOSE = "verbose"

    def is_verbose(self) -> bool:
        """Whether anything beyond errors should be printed."""
        return self is not Verbosity.QUIET

    @classmethod
    def from_flags(cls, quiet: bool = False, verbose: bool = False) -> Verbosity:
        """Verbosity selected by the ``--quiet`` and ``--verbose`` flags."""
        if quiet and verbose:
            raise ValueError("Cannot pass both --quiet and --verbose flags")
        if quiet:
            return cls.QUIET
        if verbose:
            return cls.VERBOSE
        return cls.DEFAULT


class TransactionNotConfirmed(Exception):
    """Raised when the user does not confirm a transaction."""


def decode_hex(text: str) -> bytes:
    """Decode hex digits, ignoring any leading ``0x`` prefixes."""
    while text.startswith("0x"):
        text = text[2:]
    if not _HEX.fullmatch(text):
        raise ValueError(f"Invalid hex string: {text!r}")
    return bytes.fromhex(text)


def parse_code_hash(text: str) -> bytes:
    """Parse a hex encoded code hash, which must be exactly 32 bytes."""
    data = decode_hex(text)
    if len(data) != 32:
        raise ValueError("Code hash should be 32 bytes in length")
    return data


def name_value_line(name: str, value: Any, width: int = DEFAULT_KEY_COL_WIDTH) -> str:
    """A line with ``name`` right-aligned in a column of ``width``."""
    return f"{name:>{width}} {value}"


def _print_name_value(name: str, value: Any, width: int) -> None:
    print(name_value_line(name, value, width))


def _lines(text: str) -> list[str]:
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _debug_lines(debug_message: bytes | str) -> list[str]:
    if isinstance(debug_message, str):
        return _lines(debug_message)
    try:
        return _lines(bytes(debug_message).decode("utf-8"))
    except UnicodeDecodeError as err:
        raise ValueError("Error decoding UTF8 debug message bytes") from err


def _print_debug_lines(lines: Iterable[str], width: int) -> None:
    for position, line in enumerate(lines):
        _print_name_value("Debug Message" if position == 0 else "", line, width)


def display_contract_exec_result(
    gas_consumed: Any,
    gas_required: Any,
    storage_deposit: Any,
    debug_message: bytes | str = b"",
    width: int = MAX_KEY_COL_WIDTH,
) -> None:
    """Print the fields of an ``instantiate`` or ``call`` dry-run result."""
    lines = _debug_lines(debug_message)
    _print_name_value("Gas Consumed", gas_consumed, width)
    _print_name_value("Gas Required", gas_required, width)
    _print_name_value(STORAGE_DEPOSIT_KEY, storage_deposit, width)
    _print_debug_lines(lines, width)


def display_contract_exec_result_debug(
    debug_message: bytes | str, width: int = DEFAULT_KEY_COL_WIDTH
) -> None:
    """Print only the debug message of a dry-run result, aligned."""
    _print_debug_lines(_debug_lines(debug_message), width)


def display_dry_run_result_warning(command: str) -> None:
    """Tell the user that a dry run did not submit anything."""
    print(f"Your {command} call has not been executed.")
    print(
        "To submit the transaction and execute the call on chain, "
        "add -x/--execute flag to the command."
    )


def prompt_confirm_tx(show_details: Callable[[], None]) -> None:
    """Ask the user to confirm submission; raise if they decline."""
    print("Confirm transaction details: (skip with --skip-confirm or -y)")
    show_details()
    print("Submit? (Y/n): ", end="", flush=True)
    answer = sys.stdin.readline().strip().lower()
    if answer in ("y", ""):
        return
    if answer == "n":
        raise TransactionNotConfirmed("Transaction not submitted")
    raise TransactionNotConfirmed(f"Expected either 'y' or 'n', got '{answer}'")


def print_dry_running_status(msg: str) -> None:
    """Announce that ``msg`` is being dry-run."""
    print(
        f"{'Dry-running':>{DEFAULT_KEY_COL_WIDTH}} {msg} (skip with --skip-dry-run)"
    )


def print_gas_required_success(gas: Any) -> None:
    """Report the gas estimated by a successful dry run."""
    print(f"{'Success!':>{DEFAULT_KEY_COL_WIDTH}} Gas required estimated at {gas}")


def display_all_contracts(contracts: Iterable[Any]) -> None:
    """Print one contract address per line."""
    for contract in contracts:
        print(contract)