"""Reconcile the output shapes of different solc releases.

Older solc-js builds return ``contracts`` keyed by ``"file:Name"`` with
``interface``/``bytecode`` strings and report errors as formatted strings,
with formal-verification results in a separate ``formal.errors`` list. Current
builds speak standard JSON: contracts nested per source file with an ``abi``
list and ``evm.bytecode.object``, and errors as structured records carrying a
``sourceLocation`` offset counted in UTF-8 bytes.
"""

import json
import re
from typing import Any

from contract_studio.models import CompiledContract, OffsetUnit, RawDiagnostic, Severity

_LEGACY_MESSAGE_RE = re.compile(r"^([^:]*):(\d+):(\d+):\s*([a-z]+):\s*(.+)$", re.IGNORECASE | re.DOTALL)

_FORMAL_PREFIXES = ("CHC:", "BMC:", "SMTChecker")


def partition_output(output: dict[str, Any]) -> tuple[dict[str, CompiledContract] | None, list[RawDiagnostic]]:
    """Split compiler output into the compiled contract set and raw diagnostics.

    The contract set is ``None`` when the compiler produced no contracts and
    reported at least one error, i.e. the compilation failed.
    """
    diagnostics = [_parse_error(e) for e in output.get("errors") or []]
    formal = output.get("formal") or {}
    diagnostics.extend(_parse_error(e, formal=True) for e in formal.get("errors") or [])

    contracts = _parse_contracts(output.get("contracts") or {})
    if not contracts and any(d.severity is Severity.ERROR for d in diagnostics):
        return None, diagnostics
    return contracts, diagnostics


def _parse_contracts(raw: dict[str, Any]) -> dict[str, CompiledContract]:
    contracts: dict[str, CompiledContract] = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        if _is_legacy_contract(value):
            name = _strip_source_prefix(key)
            contracts[name] = _legacy_contract(name, value)
            continue
        for name, entry in value.items():
            if isinstance(entry, dict):
                contracts[name] = _standard_contract(name, entry)
    return contracts


def _is_legacy_contract(value: dict[str, Any]) -> bool:
    return "bytecode" in value or "interface" in value


def _strip_source_prefix(key: str) -> str:
    return key.rsplit(":", 1)[-1]


def _legacy_contract(name: str, value: dict[str, Any]) -> CompiledContract:
    return CompiledContract(
        name=name,
        abi_interface=value.get("interface") or "[]",
        bytecode=value.get("bytecode") or "",
        metadata=value.get("metadata") or None,
    )


def _standard_contract(name: str, entry: dict[str, Any]) -> CompiledContract:
    abi = entry.get("abi") or []
    bytecode = ((entry.get("evm") or {}).get("bytecode") or {}).get("object") or ""
    return CompiledContract(
        name=name,
        abi_interface=abi if isinstance(abi, str) else json.dumps(abi),
        bytecode=bytecode,
        metadata=entry.get("metadata") or None,
    )


def _parse_error(error: Any, formal: bool = False) -> RawDiagnostic:
    if isinstance(error, str):
        return _parse_legacy_error(error, formal)
    return _parse_standard_error(error, formal)


def _parse_legacy_error(message: str, formal: bool) -> RawDiagnostic:
    match = _LEGACY_MESSAGE_RE.match(message.strip())
    if not match:
        return RawDiagnostic(message=message.strip(), severity=Severity.ERROR, formal=formal)
    source, line, column, kind, text = match.groups()
    return RawDiagnostic(
        message=text.strip(),
        severity=_severity(kind),
        line=int(line),
        column=int(column),
        contract_name=source or None,
        formal=formal,
    )


def _parse_standard_error(error: dict[str, Any], formal: bool) -> RawDiagnostic:
    message = error.get("message") or error.get("formattedMessage") or ""
    location = error.get("sourceLocation") or {}
    start = location.get("start")
    is_formal = (
        formal
        or error.get("component") == "formal"
        or error.get("type") == "FormalVerification"
        or message.startswith(_FORMAL_PREFIXES)
    )
    return RawDiagnostic(
        message=message.strip(),
        severity=_severity(error.get("severity") or error.get("type") or ""),
        offset=start if isinstance(start, int) and start >= 0 else None,
        offset_unit=OffsetUnit.BYTE,
        contract_name=error.get("contract") or None,
        formal=is_formal,
    )


def _severity(kind: str) -> Severity:
    lowered = kind.lower()
    if lowered in ("error", "warning", "info"):
        return Severity(lowered)
    return Severity.ERROR if lowered.endswith("error") else Severity.WARNING
