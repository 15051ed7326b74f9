import json
from pathlib import Path

import pytest

from phadecode.abi import (
    MethodSignature,
    ParamSpec,
    Resolution,
    build_method_table,
    load_abi,
    load_builtin_method_table,
    merge_method_tables,
    resolve_overload,
)
from phadecode.errors import FormatError


def _contract(name: str, *methods: dict) -> dict:
    return {"name": name, "methods": list(methods)}


def _method(name: str, *params: tuple) -> dict:
    return {
        "name": name,
        "parameters": [{"name": p_name, "type": p_type} for p_name, p_type in params],
    }


def test_builtin_table_contents() -> None:
    table = load_builtin_method_table()

    notify = table["Runtime.Notify"]
    assert sorted(signature.arity for signature in notify) == [3, 4]
    assert table["Runtime.TransferTokens"][0].params[3] == ParamSpec("amount", "BigInteger")
    assert table["Runtime.Time"][0].arity == 0


def test_builtin_table_is_a_fresh_copy() -> None:
    first = load_builtin_method_table()
    first["Runtime.Log"].clear()

    assert load_builtin_method_table()["Runtime.Log"]


def test_resolve_overload_outcomes() -> None:
    one = MethodSignature((ParamSpec("a", "String"),))
    other = MethodSignature((ParamSpec("b", "String"),))
    table = {"X.Y": [one, other], "X.Z": [one]}

    assert resolve_overload(table, "X.Z", 1).signature == one
    assert resolve_overload(table, "X.Z", 2).resolution is Resolution.MISSING
    assert resolve_overload(table, "X.Y", 1).resolution is Resolution.AMBIGUOUS
    assert resolve_overload(None, "X.Y", 1).resolution is Resolution.MISSING


def test_load_single_file(tmp_path: Path) -> None:
    path = tmp_path / "abi.json"
    payload = {"contracts": [_contract("mail", _method("PushMessage", ("from", "Address"), ("target", "Address")))]}
    path.write_text(json.dumps(payload), "utf-8")

    result = load_abi(path)

    assert result.warnings == []
    assert result.methods["mail.PushMessage"][0].params[1] == ParamSpec("target", "Address")


def test_load_directory_and_casing(tmp_path: Path) -> None:
    (tmp_path / "b.json").write_text(
        json.dumps({"Name": "friends", "Methods": [{"Name": "AddFriend", "Parameters": []}]}),
        "utf-8",
    )
    (tmp_path / "a.json").write_text(json.dumps([_contract("sale", _method("Purchase"))]), "utf-8")
    (tmp_path / "notes.txt").write_text("ignored", "utf-8")

    result = load_abi(tmp_path)

    assert set(result.methods) == {"friends.AddFriend", "sale.Purchase"}


def test_missing_parameter_names_are_filled(tmp_path: Path) -> None:
    path = tmp_path / "abi.json"
    path.write_text(json.dumps([_contract("c", {"name": "m", "parameters": [{"type": "Number"}, {}]})]), "utf-8")

    result = load_abi(path)

    assert result.methods["c.m"][0].params == (ParamSpec("arg0", "Number"), ParamSpec("arg1", "Unknown"))
    assert result.warnings == [
        "ABI parameter missing name at c.m[0]",
        "ABI parameter missing name at c.m[1]",
        "ABI parameter missing type at c.m[1]",
    ]


def test_empty_and_broken_files(tmp_path: Path) -> None:
    empty = tmp_path / "empty.json"
    empty.write_text("{}", "utf-8")
    broken = tmp_path / "broken.json"
    broken.write_text("{", "utf-8")

    assert load_abi(empty).warnings == [f"ABI file has no contracts: {empty}"]
    with pytest.raises(FormatError, match="Failed to parse ABI JSON"):
        load_abi(broken)


def test_merge_replaces_same_arity() -> None:
    table = load_builtin_method_table()
    incoming = build_method_table(
        [_contract("Runtime", _method("Log", ("message", "String")))], "abi"
    ).methods
    warnings: list = []

    merge_method_tables(table, incoming, warnings, "abi", warn_on_duplicate=False, replace_same_arity=True)

    assert warnings == []
    assert [signature.params[0].name for signature in table["Runtime.Log"]] == ["message"]


def test_duplicate_methods_warn_by_default() -> None:
    contract = _contract("c", _method("m", ("a", "String")), _method("m", ("a", "String")))

    result = build_method_table([contract], "test")

    assert result.warnings == ["ABI duplicate method c.m (test)"]
    assert len(result.methods["c.m"]) == 2
