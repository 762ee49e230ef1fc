"""Command-line entry point: ``cargo contract <command>``."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from .output import Verbosity
from .schema import verify_schema
from .version import impl_version

_PACKAGE_VERSION = "0.1.0"


class _VersionAction(argparse.Action):
    """Print the full tool version, computed only when asked for."""

    def __init__(self, option_strings: Sequence[str], dest: str = argparse.SUPPRESS,
                 default: Any = argparse.SUPPRESS, help: str | None = None) -> None:
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser: argparse.ArgumentParser, namespace: argparse.Namespace,
                 values: Any, option_string: str | None = None) -> None:
        print(f"{parser.prog} {impl_version(_PACKAGE_VERSION)}")
        parser.exit(0)


def format_err(err: BaseException) -> str:
    """Render an error, with the chain of its causes, for the terminal."""
    message = str(err) or type(err).__name__
    causes = []
    cause = err.__cause__
    while cause is not None:
        causes.append(str(cause) or type(cause).__name__)
        cause = cause.__cause__
    if causes:
        listed = "\n".join(f"    {text}" for text in causes)
        message = f"{message}\n\nCaused by:\n{listed}"
    return f"ERROR: {message}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cargo")
    parser.add_argument("-V", "--version", action=_VersionAction,
                        help="Print version information")
    opts = parser.add_subparsers(dest="opts", metavar="<command>")
    opts.required = True

    contract = opts.add_parser(
        "contract", help="Utilities to develop Wasm smart contracts."
    )
    contract.add_argument("-V", "--version", action=_VersionAction,
                          help="Print version information")
    commands = contract.add_subparsers(dest="command", metavar="<command>")
    commands.required = True

    verify = commands.add_parser(
        "verify-schema",
        help="Verify schema from the current metadata specification.",
    )
    verify.add_argument("--schema", type=Path, required=True,
                        help="The path to metadata")
    source = verify.add_mutually_exclusive_group()
    source.add_argument("--bundle", dest="contract_bundle", type=Path,
                        help="The .contract path to verify the metadata")
    source.add_argument("--metadata", type=Path,
                        help="What type of metadata to verify.")
    verify.add_argument("-q", "--quiet", action="store_true",
                        help="No output printed to stdout")
    verify.add_argument("-v", "--verbose", action="store_true",
                        help="Use verbose output")
    verify.add_argument("--output-json", action="store_true",
                        help="Output the result in JSON format")
    verify.set_defaults(parser=verify)
    return parser


def _run_verify_schema(args: argparse.Namespace) -> None:
    parser: argparse.ArgumentParser = args.parser
    if args.output_json and args.verbose:
        parser.error("argument --output-json: not allowed with argument --verbose")
    try:
        verbosity = Verbosity.from_flags(quiet=args.quiet, verbose=args.verbose)
    except ValueError as err:
        parser.error(str(err))

    result = verify_schema(
        args.schema,
        args.contract_bundle,
        args.metadata,
        args.output_json,
        verbosity,
    )
    if result.output_json:
        print(result.serialize_json())
    elif result.verbosity.is_verbose():
        print(result.display())


_COMMANDS = {
    "verify-schema": _run_verify_schema,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    try:
        _COMMANDS[args.command](args)
    except Exception as err:  # every command failure is reported the same way
        print(format_err(err), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())