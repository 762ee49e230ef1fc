"""A small WebAssembly binary reader for inspecting contract code."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TypeVar

_T = TypeVar("_T")

_MAGIC = b"\x00asm"
_SUPPORTED_VERSION = 1

_CUSTOM_SECTION = 0
_TYPE_SECTION = 1
_IMPORT_SECTION = 2
_FUNCTION_SECTION = 3
_START_SECTION = 8
_CODE_SECTION = 10
_LAST_KNOWN_SECTION = 12

_FUNC_TYPE_FORM = 0x60
_NAME_SECTION = "name"
_FUNCTION_NAMES_SUBSECTION = 1

_IMPORT_KINDS = {0: "function", 1: "table", 2: "memory", 3: "global"}

# Opcodes that need special handling while walking a function body.
_BLOCK_OPCODES = frozenset({0x02, 0x03, 0x04})
_END = 0x0B
_BR_TABLE = 0x0E
_CALL = 0x10
_CALL_INDIRECT = 0x11
_SELECT_TYPED = 0x1C
_MEMORY_SIZE_OR_GROW = frozenset({0x3F, 0x40})
_I32_CONST = 0x41
_I64_CONST = 0x42
_F32_CONST = 0x43
_F64_CONST = 0x44
_REF_NULL = 0xD0
_PREFIX_FC = 0xFC

_NO_IMMEDIATE = frozenset(
    {0x00, 0x01, 0x05, 0x0F, 0x1A, 0x1B, 0xD1, *range(0x45, 0xC5)}
)
_INDEX_IMMEDIATE = frozenset(
    {0x0C, 0x0D, _CALL, 0x20, 0x21, 0x22, 0x23, 0x24, 0x25, 0x26, 0xD2}
)
_MEMARG_IMMEDIATE = frozenset(range(0x28, 0x3F))

_PREFIXED_FC_IMMEDIATES: dict[int, tuple[str, ...]] = {
    **{sub: () for sub in range(8)},
    8: ("u32", "byte"),
    9: ("u32",),
    10: ("byte", "byte"),
    11: ("byte",),
    12: ("u32", "u32"),
    13: ("u32",),
    14: ("u32", "u32"),
    15: ("u32",),
    16: ("u32",),
    17: ("u32",),
}

_BLOCK_TYPE_BYTES = frozenset({0x40, 0x7F, 0x7E, 0x7D, 0x7C, 0x7B, 0x70, 0x6F})


class WasmParseError(ValueError):
    """Raised when bytes are not a well-formed WebAssembly module."""


class ValueType(IntEnum):
    """WebAssembly value types, keyed by their binary encoding."""

    I32 = 0x7F
    I64 = 0x7E
    F32 = 0x7D
    F64 = 0x7C
    V128 = 0x7B


@dataclass(frozen=True)
class FunctionType:
    """A function signature: parameter and result types."""

    params: tuple[ValueType, ...] = ()
    results: tuple[ValueType, ...] = ()


@dataclass(frozen=True)
class ImportEntry:
    """One entry of the import section."""

    module: str
    field: str
    kind: str
    type_index: int | None = None

    @property
    def is_function(self) -> bool:
        return self.kind == "function"


class _Reader:
    """Sequential reader over a byte string."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def peek(self) -> int:
        if self.at_end():
            raise WasmParseError("unexpected end of data")
        return self._data[self._pos]

    def byte(self) -> int:
        value = self.peek()
        self._pos += 1
        return value

    def take(self, count: int) -> bytes:
        if len(self._data) - self._pos < count:
            raise WasmParseError("unexpected end of data")
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def rest(self) -> bytes:
        return self.take(len(self._data) - self._pos)

    def sub(self, size: int) -> _Reader:
        return _Reader(self.take(size))

    def u32(self) -> int:
        result = 0
        shift = 0
        for _ in range(5):
            current = self.byte()
            result |= (current & 0x7F) << shift
            if not current & 0x80:
                if result > 0xFFFFFFFF:
                    raise WasmParseError("integer out of u32 range")
                return result
            shift += 7
        raise WasmParseError("integer representation too long")

    def skip_leb(self, max_bytes: int) -> None:
        for _ in range(max_bytes):
            if not self.byte() & 0x80:
                return
        raise WasmParseError("integer representation too long")

    def name(self) -> str:
        raw = self.take(self.u32())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise WasmParseError("invalid UTF-8 in name") from err

    def value_type(self) -> ValueType:
        code = self.byte()
        try:
            return ValueType(code)
        except ValueError as err:
            raise WasmParseError(f"unknown value type 0x{code:02x}") from err

    def vec(self, read_item: Callable[[], _T]) -> list[_T]:
        return [read_item() for _ in range(self.u32())]


def _skip_block_type(reader: _Reader) -> None:
    if reader.peek() in _BLOCK_TYPE_BYTES:
        reader.byte()
    else:
        reader.skip_leb(5)


def _decode(code: bytes) -> Iterator[tuple[int, int | None]]:
    """Walk an expression, yielding each opcode with its index immediate."""
    reader = _Reader(code)
    depth = 0
    while True:
        opcode = reader.byte()
        immediate: int | None = None
        if opcode == _END:
            if depth == 0:
                if not reader.at_end():
                    raise WasmParseError("trailing bytes after function end")
                yield opcode, None
                return
            depth -= 1
        elif opcode in _BLOCK_OPCODES:
            _skip_block_type(reader)
            depth += 1
        elif opcode in _NO_IMMEDIATE:
            pass
        elif opcode in _INDEX_IMMEDIATE:
            immediate = reader.u32()
        elif opcode in _MEMARG_IMMEDIATE:
            reader.u32()
            reader.u32()
        elif opcode == _BR_TABLE:
            reader.vec(reader.u32)
            reader.u32()
        elif opcode == _CALL_INDIRECT:
            immediate = reader.u32()
            reader.u32()
        elif opcode == _SELECT_TYPED:
            reader.vec(reader.value_type)
        elif opcode in _MEMORY_SIZE_OR_GROW or opcode == _REF_NULL:
            reader.byte()
        elif opcode == _I32_CONST:
            reader.skip_leb(5)
        elif opcode == _I64_CONST:
            reader.skip_leb(10)
        elif opcode == _F32_CONST:
            reader.take(4)
        elif opcode == _F64_CONST:
            reader.take(8)
        elif opcode == _PREFIX_FC:
            sub = reader.u32()
            kinds = _PREFIXED_FC_IMMEDIATES.get(sub)
            if kinds is None:
                raise WasmParseError(f"unknown instruction 0xfc {sub}")
            for kind in kinds:
                reader.u32() if kind == "u32" else reader.byte()
        else:
            raise WasmParseError(f"unknown opcode 0x{opcode:02x}")
        yield opcode, immediate


@dataclass(frozen=True)
class FuncBody:
    """A function body from the code section."""

    locals: tuple[tuple[int, ValueType], ...]
    code: bytes

    def calls(self) -> Iterator[int]:
        """Yield the function index of every direct ``call`` in the body."""
        for opcode, immediate in _decode(self.code):
            if opcode == _CALL and immediate is not None:
                yield immediate


@dataclass
class Module:
    """The parts of a WebAssembly module needed for inspection."""

    types: tuple[FunctionType, ...] = ()
    imports: tuple[ImportEntry, ...] = ()
    functions: tuple[int, ...] = ()
    start: int | None = None
    bodies: tuple[FuncBody, ...] = ()
    custom_sections: tuple[tuple[str, bytes], ...] = ()
    function_names: dict[int, str] | None = field(default=None)
    has_type_section: bool = False
    has_code_section: bool = False

    def has_custom_section(self, name: str) -> bool:
        """Whether a custom section with exactly this name exists."""
        return any(section_name == name for section_name, _ in self.custom_sections)

    def function_import_index(self, field: str) -> int | None:
        """Index among function imports of the import named ``field``."""
        function_imports = (entry for entry in self.imports if entry.is_function)
        for index, entry in enumerate(function_imports):
            if entry.field == field:
                return index
        return None

    def bodies_of_type(self, function_type: FunctionType) -> list[FuncBody]:
        """Bodies of defined functions whose signature is ``function_type``.

        Only the first type entry equal to ``function_type`` is considered.
        """
        try:
            type_index = self.types.index(function_type)
        except ValueError:
            return []
        bodies = []
        for function_index, type_ref in enumerate(self.functions):
            if type_ref != type_index:
                continue
            if function_index >= len(self.bodies):
                raise WasmParseError("requested function not found in code section")
            bodies.append(self.bodies[function_index])
        return bodies

    def has_function_name(self, name: str) -> bool:
        """Whether any function name in the name section contains ``name``."""
        if not self.function_names:
            return False
        return any(name in function_name for function_name in self.function_names.values())


def _read_limits(reader: _Reader) -> None:
    flags = reader.byte()
    if flags > 3:
        raise WasmParseError(f"invalid limits flags 0x{flags:02x}")
    reader.u32()
    if flags & 1:
        reader.u32()


def _read_function_type(reader: _Reader) -> FunctionType:
    form = reader.byte()
    if form != _FUNC_TYPE_FORM:
        raise WasmParseError(f"unsupported type form 0x{form:02x}")
    params = tuple(reader.vec(reader.value_type))
    results = tuple(reader.vec(reader.value_type))
    return FunctionType(params, results)


def _read_import(reader: _Reader) -> ImportEntry:
    module = reader.name()
    field_name = reader.name()
    kind_code = reader.byte()
    kind = _IMPORT_KINDS.get(kind_code)
    type_index = None
    if kind == "function":
        type_index = reader.u32()
    elif kind == "table":
        reader.byte()
        _read_limits(reader)
    elif kind == "memory":
        _read_limits(reader)
    elif kind == "global":
        reader.value_type()
        reader.byte()
    else:
        raise WasmParseError(f"unknown import kind 0x{kind_code:02x}")
    return ImportEntry(module, field_name, kind, type_index)


def _read_body(reader: _Reader) -> FuncBody:
    content = reader.sub(reader.u32())
    locals_ = tuple(content.vec(lambda: (content.u32(), content.value_type())))
    body = FuncBody(locals_, content.rest())
    deque(_decode(body.code), maxlen=0)
    return body


def _parse_function_names(payload: bytes) -> dict[int, str] | None:
    reader = _Reader(payload)
    names: dict[int, str] | None = None
    while not reader.at_end():
        sub_id = reader.byte()
        sub = reader.sub(reader.u32())
        if sub_id == _FUNCTION_NAMES_SUBSECTION:
            names = dict(sub.vec(lambda: (sub.u32(), sub.name())))
    return names


def parse_module(data: bytes) -> Module:
    """Parse a WebAssembly binary into a :class:`Module`."""
    reader = _Reader(bytes(data))
    if reader.take(4) != _MAGIC:
        raise WasmParseError("invalid magic number")
    version = int.from_bytes(reader.take(4), "little")
    if version != _SUPPORTED_VERSION:
        raise WasmParseError(f"unsupported version {version}")

    module = Module()
    custom_sections: list[tuple[str, bytes]] = []
    seen: set[int] = set()
    while not reader.at_end():
        section_id = reader.byte()
        content = reader.sub(reader.u32())
        if section_id == _CUSTOM_SECTION:
            custom_sections.append((content.name(), content.rest()))
            continue
        if section_id > _LAST_KNOWN_SECTION:
            raise WasmParseError(f"unknown section id {section_id}")
        if section_id in seen:
            raise WasmParseError(f"duplicate section id {section_id}")
        seen.add(section_id)

        if section_id == _TYPE_SECTION:
            module.types = tuple(content.vec(lambda: _read_function_type(content)))
            module.has_type_section = True
        elif section_id == _IMPORT_SECTION:
            module.imports = tuple(content.vec(lambda: _read_import(content)))
        elif section_id == _FUNCTION_SECTION:
            module.functions = tuple(content.vec(content.u32))
        elif section_id == _START_SECTION:
            module.start = content.u32()
        elif section_id == _CODE_SECTION:
            module.bodies = tuple(content.vec(lambda: _read_body(content)))
            module.has_code_section = True
        else:
            content.rest()
        if not content.at_end():
            raise WasmParseError(f"section {section_id} has trailing bytes")

    module.custom_sections = tuple(custom_sections)
    for section_name, payload in custom_sections:
        if section_name == _NAME_SECTION:
            try:
                module.function_names = _parse_function_names(payload)
            except WasmParseError:
                module.function_names = None
            break
    return module