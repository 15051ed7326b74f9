"""Method signature tables used to name reconstructed VM call arguments."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import FormatError

logger = logging.getLogger(__name__)

BUILTIN_ABI_PATH = Path(__file__).with_name("builtin_abi.json")


@dataclass(frozen=True)
class ParamSpec:
    name: str
    type: str


@dataclass(frozen=True)
class MethodSignature:
    params: Tuple[ParamSpec, ...]
    return_type: Optional[str] = None

    @property
    def arity(self) -> int:
        return len(self.params)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "params": [{"name": param.name, "type": param.type} for param in self.params]
        }
        if self.return_type:
            data["return_type"] = self.return_type
        return data


MethodTable = Dict[str, List[MethodSignature]]


class Resolution(Enum):
    EXACT = auto()
    MISSING = auto()
    AMBIGUOUS = auto()


@dataclass(frozen=True)
class OverloadResult:
    resolution: Resolution
    signature: Optional[MethodSignature] = None


def resolve_overload(
    table: Optional[Mapping[str, Sequence[MethodSignature]]], key: str, arity: int
) -> OverloadResult:
    """Pick the signature for ``key`` whose parameter count equals ``arity``.

    The result is ``EXACT`` only when a single candidate matches; no entry or
    no arity match is ``MISSING`` and several matches are ``AMBIGUOUS``.
    """

    candidates = table.get(key) if table else None
    if not candidates:
        return OverloadResult(Resolution.MISSING)
    matches = [candidate for candidate in candidates if candidate.arity == arity]
    if len(matches) == 1:
        return OverloadResult(Resolution.EXACT, matches[0])
    if matches:
        return OverloadResult(Resolution.AMBIGUOUS)
    return OverloadResult(Resolution.MISSING)


@dataclass
class AbiLoadResult:
    methods: MethodTable = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _pick(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def _extract_contracts(payload: Any) -> List[Mapping[str, Any]]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, Mapping)]
    if not isinstance(payload, Mapping):
        return []
    for key in ("contracts", "Contracts"):
        if isinstance(payload.get(key), list):
            return [item for item in payload[key] if isinstance(item, Mapping)]
    name = _pick(payload, "name", "Name")
    methods = _pick(payload, "methods", "Methods")
    if isinstance(name, str) and isinstance(methods, list):
        return [payload]
    return []


def _extract_params(method: Mapping[str, Any], key: str, warnings: List[str]) -> Tuple[ParamSpec, ...]:
    raw_params = _pick(method, "parameters", "Parameters") or []
    params: List[ParamSpec] = []
    for index, raw in enumerate(raw_params):
        record = raw if isinstance(raw, Mapping) else {}
        name = _text(_pick(record, "name", "Name"))
        type_name = _text(_pick(record, "type", "Type"))
        if not name:
            warnings.append(f"ABI parameter missing name at {key}[{index}]")
        if not type_name:
            warnings.append(f"ABI parameter missing type at {key}[{index}]")
        params.append(ParamSpec(name or f"arg{index}", type_name or "Unknown"))
    return tuple(params)


def _merge_entry(
    methods: MethodTable,
    key: str,
    signature: MethodSignature,
    warnings: List[str],
    source: str,
    *,
    warn_on_duplicate: bool = True,
    replace_same_arity: bool = False,
) -> None:
    existing = methods.get(key)
    if not existing:
        methods[key] = [signature]
        return
    if replace_same_arity:
        kept = [candidate for candidate in existing if candidate.arity != signature.arity]
        methods[key] = kept + [signature]
        return
    if warn_on_duplicate:
        warnings.append(f"ABI duplicate method {key} ({source})")
    existing.append(signature)


def build_method_table(contracts: Iterable[Mapping[str, Any]], source: str) -> AbiLoadResult:
    """Build a table from contract records shaped like RPC or exported ABI JSON."""

    result = AbiLoadResult()
    for contract in contracts:
        contract_name = _text(_pick(contract, "name", "Name"))
        if not contract_name:
            result.warnings.append(f"ABI contract missing name ({source})")
            continue
        for method in _pick(contract, "methods", "Methods") or []:
            if not isinstance(method, Mapping):
                continue
            method_name = _text(_pick(method, "name", "Name"))
            if not method_name:
                result.warnings.append(f"ABI method missing name in {contract_name} ({source})")
                continue
            key = f"{contract_name}.{method_name}"
            signature = MethodSignature(
                params=_extract_params(method, key, result.warnings),
                return_type=_text(_pick(method, "returnType", "ReturnType")) or None,
            )
            _merge_entry(result.methods, key, signature, result.warnings, source)
    return result


def merge_method_tables(
    target: MethodTable,
    incoming: Mapping[str, Sequence[MethodSignature]],
    warnings: List[str],
    source: str,
    *,
    warn_on_duplicate: bool = True,
    replace_same_arity: bool = False,
) -> None:
    for key, signatures in incoming.items():
        for signature in signatures:
            _merge_entry(
                target,
                key,
                signature,
                warnings,
                source,
                warn_on_duplicate=warn_on_duplicate,
                replace_same_arity=replace_same_arity,
            )


def _load_abi_file(path: Path) -> AbiLoadResult:
    try:
        payload = json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as exc:
        raise FormatError(f"Failed to parse ABI JSON: {path}") from exc
    contracts = _extract_contracts(payload)
    result = build_method_table(contracts, path.name)
    if not contracts:
        result.warnings.insert(0, f"ABI file has no contracts: {path}")
    return result


def load_abi(path: Path) -> AbiLoadResult:
    """Load a single ABI file or every ``*.json`` file in a directory."""

    path = Path(path)
    if not path.is_dir():
        return _load_abi_file(path)
    result = AbiLoadResult()
    for entry in sorted(path.iterdir()):
        if entry.suffix.lower() != ".json":
            continue
        logger.debug("loading ABI file %s", entry)
        loaded = _load_abi_file(entry)
        merge_method_tables(result.methods, loaded.methods, result.warnings, entry.name)
        result.warnings.extend(loaded.warnings)
    return result


def load_builtin_method_table(path: Path = BUILTIN_ABI_PATH) -> MethodTable:
    """Return a fresh copy of the shipped interop and native contract table.

    Entries repeated verbatim in the source data are skipped so they do not
    turn into ambiguous overloads.
    """

    entries = json.loads(Path(path).read_text("utf-8"))
    table: MethodTable = {}
    for entry in entries:
        signature = MethodSignature(
            params=tuple(ParamSpec(name, type_name) for name, type_name in entry["params"]),
            return_type=entry.get("returnType"),
        )
        existing = table.setdefault(entry["key"], [])
        if signature in existing:
            continue
        existing.append(signature)
    return table


__all__ = [
    "AbiLoadResult",
    "MethodSignature",
    "MethodTable",
    "OverloadResult",
    "ParamSpec",
    "Resolution",
    "build_method_table",
    "load_abi",
    "load_builtin_method_table",
    "merge_method_tables",
    "resolve_overload",
]
