# inkcontract

Helpers and a small command-line tool for working with Wasm smart contracts:

- detect which language a compiled contract was written in (ink!, Solidity or
  AssemblyScript) straight from its Wasm bytes;
- parse and format token balances in raw or denominated form (`500.5MDOT`,
  `0.1nDOT`, `12μDOT`, ...);
- validate contract metadata or `.contract` bundles against a JSON schema;
- console output helpers such as hex and code-hash parsing and aligned
  name/value lines.

## Installation

```
pip install inkcontract
```

To run the test suite as well:

```
pip install "inkcontract[test]"
pytest
```

## Command line

The package installs an `inkcontract` command. Its usage line reads
`cargo contract <command>`; the one command it offers is `verify-schema`:

```
inkcontract contract verify-schema --schema schema.json --metadata flipper.json
inkcontract contract verify-schema --schema schema.json --bundle flipper.contract
```

Options of `verify-schema`:

- `--schema PATH` (required): the JSON schema to validate against;
- `--bundle PATH` or `--metadata PATH` (not both): a `.contract` bundle, whose
  embedded Wasm code is dropped before validation, or a metadata file;
- `-q/--quiet`, `-v/--verbose`: how much is printed;
- `--output-json`: print the result as JSON (not allowed with `--verbose`).

On success a short summary is printed unless `--quiet` is given. On failure
the error, prefixed with `ERROR:` and followed by its causes, goes to standard
error and the exit status is 1.

`inkcontract --version` (or `inkcontract contract --version`) prints the
version as `<version>-<git commit>-<platform>`; the commit is taken from
`git rev-parse --short HEAD` in the current directory, or `unknown`.

### What the tool does not do

The command line does not build, check, upload, instantiate, call or remove
contracts, does not encode or decode messages, and does not talk to a node at
all (no contract info, storage inspection or RPC calls). The balance and
output helpers below are there for use from Python.

## Library use

### Detecting the source language

```python
from inkcontract.analyze import determine_language, UnsupportedLanguageError

with open("flipper.wasm", "rb") as fh:
    code = fh.read()

try:
    language = determine_language(code)
except UnsupportedLanguageError:
    print("Unknown")
else:
    print(language)  # "ink!", "Solidity" or "AssemblyScript"
```

Detection follows a few heuristics: a module without a start function that
carries a `producers` custom section is Solidity; one with a start function
and a `sourceMappingURL` section is AssemblyScript; one without a start
function whose code calls the imported `value_transferred` (or
`seal_value_transferred`) function from the typical ink! helpers, or whose
name section has a function name containing `ink_env`, is ink!. Malformed
Wasm raises `inkcontract.wasm.WasmParseError`.

The reader behind this is `inkcontract.wasm`: `parse_module(data)` returns a
`Module` with its types, imports, function bodies (`FuncBody`, whose
`calls()` yields the targets of direct calls), start function, custom
sections and function names.

### Balances

```python
from inkcontract.balance import TokenMetadata, parse_balance, from_raw

dot = TokenMetadata(token_decimals=10, symbol="DOT")

parse_balance("500.5MDOT").denominate_balance(dot)   # 5005000000000000000
parse_balance("1_000").denominate_balance(dot)        # 1000 (raw, unchanged)
print(from_raw(5_005_000_000_000_000_000, dot))       # 500.5MDOT
```

Supported prefixes are `G`, `M`, `k`, none, `m`, `μ` and `n`
(`inkcontract.units.UnitPrefix`). Underscores in input are ignored. Asking
for more precision than the token supports (for example `0.01546nDOT` with
ten decimals) raises `inkcontract.units.BalanceError`, as does a value that
does not fit. `TokenMetadata.from_system_properties` builds metadata from a
node's system properties mapping, defaulting to 12 decimals and `UNIT`.

### Schema verification

`inkcontract.schema.verify_schema(schema_path, contract_bundle, metadata_path,
output_json, verbosity)` returns a `SchemaVerificationResult`, whose
`display()` and `serialize_json()` give a human-readable or JSON summary.
Unreadable files and validation failures raise `SchemaVerificationError`,
the latter listing every problem found.

### Output helpers

```python
from inkcontract.output import parse_code_hash, name_value_line

parse_code_hash("0xd43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d")
print(name_value_line("Contract", "5Grw...", 12))
```

A code hash must be exactly 32 bytes; the `0x` prefix is optional.
`inkcontract.output` also has `decode_hex`, `Verbosity`, printers for dry-run
results and status lines, and `prompt_confirm_tx`, which reads a `Y/n`
answer from standard input and raises `TransactionNotConfirmed` on anything
but yes.