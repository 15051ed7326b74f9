"""Minimal JSON-RPC client for a chain node."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class RpcError(RuntimeError):
    """Raised when the node cannot be reached or answers with an error."""


@dataclass(frozen=True)
class TransactionData:
    hash: str = ""
    chain_address: str = ""
    script: str = ""
    payload: str = ""
    expiration: int = 0
    gas_payer: Optional[str] = None
    gas_limit: Optional[str] = None
    carbon_tx_type: int = 0
    carbon_tx_data: str = ""
    signatures: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TransactionData":
        gas_limit = payload.get("gasLimit")
        return cls(
            hash=str(payload.get("hash") or ""),
            chain_address=str(payload.get("chainAddress") or ""),
            script=str(payload.get("script") or ""),
            payload=str(payload.get("payload") or ""),
            expiration=int(payload.get("expiration") or 0),
            gas_payer=payload.get("gasPayer") or None,
            gas_limit=str(gas_limit) if gas_limit not in (None, "") else None,
            carbon_tx_type=int(payload.get("carbonTxType") or 0),
            carbon_tx_data=str(payload.get("carbonTxData") or ""),
            signatures=list(payload.get("signatures") or []),
        )


class RpcClient:
    def __init__(self, url: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout
        self._next_id = 1

    def call(self, method: str, *params: Any) -> Any:
        request = {"jsonrpc": "2.0", "method": method, "params": list(params), "id": self._next_id}
        self._next_id += 1
        logger.debug("RPC %s %s", method, self.url)
        try:
            response = requests.post(self.url, json=request, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RpcError(f"RPC request {method} failed: {exc}") from exc
        if response.status_code != 200:
            raise RpcError(f"RPC {method} returned HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise RpcError(f"RPC {method} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise RpcError(f"RPC {method} returned an unexpected response")
        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise RpcError(f"RPC {method} error: {message}")
        result = data.get("result")
        # nodes report lookup failures as {"error": "..."} inside the result
        if isinstance(result, dict) and isinstance(result.get("error"), str):
            raise RpcError(f"RPC {method} error: {result['error']}")
        return result

    def get_transaction(self, tx_hash: str) -> TransactionData:
        result = self.call("getTransaction", tx_hash)
        if not isinstance(result, dict):
            raise RpcError(f"transaction {tx_hash} not found")
        return TransactionData.from_dict(result)

    def get_contracts(self, chain: str = "main", with_methods: bool = True) -> List[Dict[str, Any]]:
        result = self.call("getContracts", chain, with_methods)
        if not isinstance(result, list):
            raise RpcError("getContracts returned an unexpected response")
        return result


__all__ = ["RpcClient", "RpcError", "TransactionData"]
