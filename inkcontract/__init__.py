"""Wasm smart contract tooling: language detection, token balances, schema checks and output helpers."""

__version__ = "0.1.0"