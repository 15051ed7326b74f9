"""Transaction format dispatch: Carbon first, then the legacy VM container."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from .abi import MethodSignature
from .carbon import CarbonTxType, RpcContext, decode_carbon_payload, decode_carbon_signed_tx
from .errors import DecodeError
from .hexutil import hex_to_bytes
from .output import DecodeOutput, RpcMeta
from .vm import VmDecoded, attach_disassembly, decode_vm_transaction

logger = logging.getLogger(__name__)

MethodTableView = Optional[Mapping[str, Sequence[MethodSignature]]]


def _inner_transaction_hex(msg: Any) -> Optional[str]:
    if not isinstance(msg, dict):
        return None
    transaction = msg.get("transaction")
    if isinstance(transaction, str) and transaction:
        return transaction
    return None


def attach_inner_vm(
    output: DecodeOutput,
    method_table: MethodTableView = None,
    protocol_version: Optional[int] = None,
) -> None:
    """Decode the VM transaction wrapped by a ``Phantasma_Raw`` Carbon message."""

    if output.carbon is None or output.carbon.type != CarbonTxType.PHANTASMA_RAW:
        return
    tx_hex = _inner_transaction_hex(output.carbon.msg)
    if tx_hex is None:
        output.warnings.append("Phantasma_Raw payload missing inner transaction bytes")
        return
    try:
        vm, warnings = decode_vm_transaction(hex_to_bytes(tx_hex), method_table, protocol_version)
    except DecodeError as exc:
        output.warnings.append(f"Phantasma_Raw inner VM decode failed: {exc}")
        return
    output.vm = vm
    output.warnings.extend(warnings)


def decode_tx_bytes(
    output: DecodeOutput,
    data: bytes,
    method_table: MethodTableView = None,
    protocol_version: Optional[int] = None,
) -> DecodeOutput:
    try:
        carbon, warnings = decode_carbon_signed_tx(data)
    except DecodeError as exc:
        logger.debug("Carbon decode failed (%s); trying VM", exc)
    else:
        output.carbon = carbon
        output.warnings.extend(warnings)
        attach_inner_vm(output, method_table, protocol_version)
        return output

    try:
        vm, warnings = decode_vm_transaction(data, method_table, protocol_version)
    except DecodeError as exc:
        output.errors.append(str(exc))
        output.errors.append("failed to decode as Carbon or VM")
        return output
    output.vm = vm
    output.warnings.extend(warnings)
    return output


def decode_tx_hex(
    text: str,
    method_table: MethodTableView = None,
    protocol_version: Optional[int] = None,
    *,
    format: str = "pretty",
) -> DecodeOutput:
    """Decode a transaction given as hex; problems land in ``output.errors``."""

    output = DecodeOutput(source="tx-hex", input=text, format=format)
    try:
        data = hex_to_bytes(text)
    except DecodeError as exc:
        output.errors.append(str(exc))
        return output
    output.input = data.hex()
    return decode_tx_bytes(output, data, method_table, protocol_version)


def _vm_from_rpc(
    tx: Any, method_table: MethodTableView, protocol_version: Optional[int]
) -> Tuple[VmDecoded, List[str]]:
    decoded = VmDecoded(
        nexus="",
        chain=tx.chain_address,
        script_hex=tx.script.lower(),
        payload_hex=tx.payload.lower(),
        expiration_unix=tx.expiration,
        signatures=len(tx.signatures),
    )
    warnings: List[str] = []
    attach_disassembly(
        decoded,
        warnings,
        method_table,
        protocol_version,
        failure_prefix="VM disassembly failed for RPC script",
    )
    return decoded, warnings


def decode_tx_hash(
    tx_hash: str,
    client: Any,
    method_table: MethodTableView = None,
    protocol_version: Optional[int] = None,
    *,
    format: str = "pretty",
) -> DecodeOutput:
    """Fetch a transaction through ``client`` and decode whatever the node exposes.

    ``client`` needs a ``url`` attribute and a ``get_transaction(hash)`` method
    returning a record shaped like :class:`phadecode.rpc.TransactionData`.
    """

    output = DecodeOutput(source="tx-hash", input=tx_hash, format=format)
    output.rpc = RpcMeta(url=client.url, method="getTransaction")
    try:
        tx = client.get_transaction(tx_hash)
    except (RuntimeError, ValueError) as exc:
        output.errors.append(str(exc))
        return output

    carbon_hex = (tx.carbon_tx_data or "").strip()
    if carbon_hex and carbon_hex.lower() != "0x":
        try:
            data = hex_to_bytes(carbon_hex)
            carbon, warnings = decode_carbon_signed_tx(data)
        except DecodeError as exc:
            output.warnings.append(
                f"SignedTxMsg decode failed ({exc}); trying payload-only decode"
            )
            context = RpcContext(
                gas_payer=tx.gas_payer,
                gas_limit=tx.gas_limit,
                expiration=tx.expiration,
                payload_hex=tx.payload,
                signatures=tx.signatures,
            )
            try:
                carbon, warnings = decode_carbon_payload(
                    tx.carbon_tx_type, hex_to_bytes(carbon_hex), context
                )
            except DecodeError as payload_exc:
                output.warnings.append(str(payload_exc))
                carbon = None
        if carbon is not None:
            output.carbon = carbon
            output.warnings.extend(warnings)
            attach_inner_vm(output, method_table, protocol_version)
            return output

    vm, warnings = _vm_from_rpc(tx, method_table, protocol_version)
    output.vm = vm
    output.warnings.extend(warnings)
    output.warnings.append("RPC does not expose full VM tx bytes; output is script/payload only")
    return output


__all__ = ["attach_inner_vm", "decode_tx_bytes", "decode_tx_hash", "decode_tx_hex"]
