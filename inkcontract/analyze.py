"""Detect the source language of a contract from its WebAssembly code."""

from __future__ import annotations

from enum import Enum

from .wasm import FuncBody, FunctionType, Module, ValueType, WasmParseError, parse_module

# Signature of ink!'s `deny_payment` helper.
_DENY_PAYMENT = FunctionType((), (ValueType.I32,))
# Signature of ink!'s `transferred_value` helper.
_TRANSFERRED_VALUE = FunctionType((ValueType.I32,), ())


class Language(str, Enum):
    """Languages a contract can be written in."""

    INK = "ink!"
    SOLIDITY = "Solidity"
    ASSEMBLY_SCRIPT = "AssemblyScript"

    def __str__(self) -> str:
        return self.value


class UnsupportedLanguageError(ValueError):
    """Raised when the contract language cannot be recognised."""


def _is_ink_function_present(module: Module) -> bool:
    # Both helpers call the `value_transferred` host function.
    index = module.function_import_index("value_transferred")  # ink! >= 4
    if index is None:
        index = module.function_import_index("seal_value_transferred")  # ink! 3
    if index is None:
        return False

    bodies: list[FuncBody] = []
    for signature in (_DENY_PAYMENT, _TRANSFERRED_VALUE):
        try:
            bodies.extend(module.bodies_of_type(signature))
        except WasmParseError:
            continue
    return any(index in body.calls() for body in bodies)


def determine_language(code: bytes) -> Language:
    """Guess the language a contract was written in from its Wasm binary.

    Raises :class:`WasmParseError` for malformed code and
    :class:`UnsupportedLanguageError` when no heuristic matches.
    """
    module = parse_module(code)
    has_start = module.start is not None

    if not has_start and module.has_custom_section("producers"):
        return Language.SOLIDITY
    if has_start and module.has_custom_section("sourceMappingURL"):
        return Language.ASSEMBLY_SCRIPT
    if not has_start and (
        _is_ink_function_present(module) or module.has_function_name("ink_env")
    ):
        return Language.INK
    raise UnsupportedLanguageError("Language unsupported or unrecognized")