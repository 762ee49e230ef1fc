import pytest

from inkcontract.analyze import Language, UnsupportedLanguageError, determine_language
from inkcontract.wasm import WasmParseError

I32 = 0x7F
I64 = 0x7E


def leb(value):
    out = bytearray()
    while True:
        low = value & 0x7F
        value >>= 7
        if value:
            out.append(low | 0x80)
        else:
            out.append(low)
            return bytes(out)


def vec(items):
    return leb(len(items)) + b"".join(items)


def name(text):
    raw = text.encode()
    return leb(len(raw)) + raw


def section(section_id, payload):
    return bytes([section_id]) + leb(len(payload)) + payload


def module(*sections):
    return b"\x00asm\x01\x00\x00\x00" + b"".join(sections)


def functype(params, results):
    return b"\x60" + vec([bytes([p]) for p in params]) + vec([bytes([r]) for r in results])


def import_func(mod, field, type_index):
    return name(mod) + name(field) + b"\x00" + leb(type_index)


def import_memory(mod, field, minimum, maximum):
    return name(mod) + name(field) + b"\x02\x01" + leb(minimum) + leb(maximum)


def body(code, locals_=()):
    payload = vec([leb(count) + bytes([t]) for count, t in locals_]) + code
    return leb(len(payload)) + payload


def custom(section_name, payload=b""):
    return section(0, name(section_name) + payload)


def names_section(functions):
    sub = vec([leb(i) + name(n) for i, n in functions])
    return custom("name", b"\x01" + leb(len(sub)) + sub)


INK_BODY = bytes(
    [
        0x23, 0x00,
        0x41, 32,
        0x6B,
        0x22, 0x00,
        0x24, 0x00,
        0x20, 0x00,
        0x42, 0x00,
        0x37, 0x03, 0x08,
        0x20, 0x00,
        0x42, 0x00,
        0x37, 0x03, 0x00,
        0x20, 0x00,
        0x41, 16,
        0x36, 0x02, 28,
        0x20, 0x00,
        0x20, 0x00,
        0x41, 28,
        0x6A,
        0x10, 0x01,
        0x20, 0x00,
        0x29, 0x03, 0x08,
        0x21, 0x01,
        0x20, 0x00,
        0x29, 0x03, 0x00,
        0x21, 0x02,
        0x20, 0x00,
        0x41, 32,
        0x6A,
        0x24, 0x00,
        0x41, 5,
        0x41, 4,
        0x20, 0x01,
        0x20, 0x02,
        0x84,
        0x50,
        0x1B,
        0x0B,
    ]
)


def ink_contract(import_field="value_transferred"):
    return module(
        section(1, vec([functype([I32, I32, I32], []), functype([], [I32]), functype([I32, I32], [])])),
        section(
            2,
            vec(
                [
                    import_func("seal", "foo", 0),
                    import_func("seal0", import_field, 2),
                    import_memory("env", "memory", 2, 16),
                ]
            ),
        ),
        section(3, vec([leb(2), leb(1)])),
        section(6, vec([b"\x7f\x01\x41" + leb(65536) + b"\x0b"])),
        section(10, vec([body(b"\x0b"), body(INK_BODY, [(1, I32), (2, I64)])])),
    )


def test_fails_with_unsupported_language():
    code = module(
        section(1, vec([functype([], []), functype([I32, I32, I32], [])])),
        section(2, vec([import_func("env", "memory", 1)])),
        section(3, vec([leb(0), leb(1)])),
        section(8, leb(1)),
        section(10, vec([body(b"\x0b"), body(b"\x0b")])),
    )
    with pytest.raises(UnsupportedLanguageError) as info:
        determine_language(code)
    assert str(info.value) == "Language unsupported or unrecognized"


def test_determines_ink_language():
    assert determine_language(ink_contract()) is Language.INK


def test_determines_ink3_language():
    assert determine_language(ink_contract("seal_value_transferred")) is Language.INK


def test_determines_solidity_language():
    code = module(
        section(1, vec([functype([I32, I32, I32], [])])),
        section(2, vec([import_memory("env", "memory", 16, 16)])),
        section(3, vec([leb(0)])),
        section(10, vec([body(b"\x0b")])),
        custom("producers"),
    )
    assert determine_language(code) is Language.SOLIDITY


def test_determines_assembly_script_language():
    code = module(
        section(1, vec([functype([], []), functype([I32, I32, I32], [])])),
        section(
            2,
            vec([import_func("seal", "foo", 1), import_memory("env", "memory", 2, 16)]),
        ),
        section(3, vec([leb(0), leb(1)])),
        section(8, leb(1)),
        section(10, vec([body(b"\x0b"), body(b"\x0b")])),
        custom("sourceMappingURL"),
    )
    assert determine_language(code) is Language.ASSEMBLY_SCRIPT


def test_ink_detected_from_debug_names():
    code = module(
        section(1, vec([functype([], [])])),
        section(3, vec([leb(0)])),
        section(10, vec([body(b"\x0b")])),
        names_section([(0, "ink_env::engine::on_chain::ext::caller")]),
    )
    assert determine_language(code) is Language.INK


def test_start_section_prevents_ink_detection():
    code = module(
        section(1, vec([functype([], [])])),
        section(3, vec([leb(0)])),
        section(8, leb(0)),
        section(10, vec([body(b"\x0b")])),
        names_section([(0, "ink_env::helper")]),
    )
    with pytest.raises(UnsupportedLanguageError):
        determine_language(code)


def test_producers_takes_precedence_over_ink():
    code = ink_contract() + custom("producers")
    assert determine_language(code) is Language.SOLIDITY


def test_invalid_code_raises_parse_error():
    with pytest.raises(WasmParseError):
        determine_language(b"not wasm at all")