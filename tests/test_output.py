import io

import pytest

from inkcontract.output import (
    MAX_KEY_COL_WIDTH,
    TransactionNotConfirmed,
    Verbosity,
    decode_hex,
    display_all_contracts,
    display_contract_exec_result,
    display_contract_exec_result_debug,
    display_dry_run_result_warning,
    name_value_line,
    parse_code_hash,
    print_dry_running_status,
    print_gas_required_success,
    prompt_confirm_tx,
)

HASH = "d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"


def test_parse_code_hash_with_prefix():
    assert parse_code_hash("0x" + HASH) == bytes.fromhex(HASH)


def test_parse_code_hash_without_prefix():
    result = parse_code_hash(HASH)
    assert len(result) == 32
    assert result.hex() == HASH


def test_parse_incorrect_len_code_hash_fails():
    with pytest.raises(ValueError, match="32 bytes"):
        parse_code_hash("d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da2")


def test_parse_bad_format_code_hash_fails():
    with pytest.raises(ValueError):
        parse_code_hash(
            "x43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d"
        )


def test_decode_hex_round_trip():
    data = bytes(range(20))
    assert decode_hex("0x" + data.hex()) == data
    assert decode_hex(data.hex().upper()) == data


def test_decode_hex_odd_length_fails():
    with pytest.raises(ValueError):
        decode_hex("abc")


def test_name_value_line_right_aligns():
    line = name_value_line("Result", "ok", 12)
    assert line == "      Result ok"
    assert line.index(" ok") == 12


def test_display_contract_exec_result(capsys):
    display_contract_exec_result(1, 2, 3, b"first\nsecond\n")
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 5
    assert lines[0] == name_value_line("Gas Consumed", 1, MAX_KEY_COL_WIDTH)
    assert lines[2] == name_value_line("Storage Total Deposit", 3, MAX_KEY_COL_WIDTH)
    assert lines[3] == name_value_line("Debug Message", "first", MAX_KEY_COL_WIDTH)
    assert lines[4] == name_value_line("", "second", MAX_KEY_COL_WIDTH)


def test_display_contract_exec_result_rejects_invalid_utf8(capsys):
    with pytest.raises(ValueError, match="UTF8"):
        display_contract_exec_result(1, 2, 3, b"\xff\xfe")
    assert capsys.readouterr().out == ""


def test_display_contract_exec_result_debug_empty(capsys):
    display_contract_exec_result_debug(b"", 12)
    assert capsys.readouterr().out == ""


def test_display_contract_exec_result_debug_lines(capsys):
    display_contract_exec_result_debug(b"one\r\ntwo", 12)
    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        name_value_line("Debug Message", "one", 12),
        name_value_line("", "two", 12),
    ]


def test_dry_run_warning_mentions_command(capsys):
    display_dry_run_result_warning("message")
    out = capsys.readouterr().out
    assert out.startswith("Your message call has not been executed.")
    assert "-x/--execute" in out


@pytest.mark.parametrize("answer", ["y\n", "Y\n", "\n", ""])
def test_prompt_confirm_accepts(monkeypatch, capsys, answer):
    calls = []
    monkeypatch.setattr("sys.stdin", io.StringIO(answer))
    prompt_confirm_tx(lambda: calls.append(True))
    assert calls == [True]
    assert "Submit?" in capsys.readouterr().out


def test_prompt_confirm_declined(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("n\n"))
    with pytest.raises(TransactionNotConfirmed, match="Transaction not submitted"):
        prompt_confirm_tx(lambda: None)


def test_prompt_confirm_unexpected_answer(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("maybe\n"))
    with pytest.raises(TransactionNotConfirmed, match="got 'maybe'"):
        prompt_confirm_tx(lambda: None)


def test_print_dry_running_status(capsys):
    print_dry_running_status("flip")
    assert capsys.readouterr().out.rstrip("\n").endswith(
        "flip (skip with --skip-dry-run)"
    )


def test_print_gas_required_success(capsys):
    print_gas_required_success("W")
    assert "Gas required estimated at W" in capsys.readouterr().out


def test_display_all_contracts(capsys):
    display_all_contracts(["a", "b"])
    assert capsys.readouterr().out == "a\nb\n"


def test_verbosity_flags():
    assert Verbosity.from_flags() is Verbosity.DEFAULT
    assert Verbosity.from_flags(quiet=True).is_verbose() is False
    assert Verbosity.from_flags(verbose=True).is_verbose() is True
    with pytest.raises(ValueError):
        Verbosity.from_flags(quiet=True, verbose=True)