"""JSON-RPC over HTTP and a client for the CKB node API."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit

import requests

from ckbkit.packed import Block, Header, OutPoint, Script, Transaction

_ERROR_DESCRIPTIONS = {
    -32700: "Parse error",
    -32600: "Invalid request",
    -32601: "Method not found",
    -32602: "Invalid params",
    -32603: "Internal error",
}


class RpcError(Exception):
    """Base of all RPC client errors."""


class RpcJsonError(RpcError):
    def __init__(self, detail: object) -> None:
        self.detail = detail
        super().__init__(f"parse json error: `{detail}`")


class RpcHttpError(RpcError):
    def __init__(self, detail: object) -> None:
        self.detail = detail
        super().__init__(f"http error: `{detail}`")


class RpcResponseError(RpcError):
    """The server answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        description = _ERROR_DESCRIPTIONS.get(code, "Server error")
        super().__init__(f"jsonrpc error: `{description}: {message}`")


def _encode(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return hex(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        return to_json()
    if isinstance(value, Mapping):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    raise TypeError(f"cannot encode {type(value).__name__} as JSON-RPC parameter")


def _int(value: Any) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"expected hex number, got {value!r}")
    return int(value, 16)


def _hash(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"expected hex string, got {value!r}")
    data = bytes.fromhex(value[2:])
    if len(data) != 32:
        raise ValueError(f"expected 32 bytes hash, got {len(data)}")
    return data


def _bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"expected boolean, got {value!r}")
    return value


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"expected string, got {value!r}")
    return value


def _unit(value: Any) -> None:
    if value is not None:
        raise ValueError(f"expected null, got {value!r}")


def _raw(value: Any) -> Any:
    return value


def _optional(convert: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def wrapped(value: Any) -> Any:
        return None if value is None else convert(value)

    return wrapped


def _list_of(convert: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def wrapped(value: Any) -> list[Any]:
        if not isinstance(value, list):
            raise ValueError(f"expected array, got {value!r}")
        return [convert(item) for item in value]

    return wrapped


class JsonRpcClient:
    """A blocking JSON-RPC 2.0 client over HTTP POST."""

    def __init__(
        self, url: str, session: requests.Session | None = None, timeout: float = 30.0
    ) -> None:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f'invalid ckb uri {url!r}, e.g. "http://127.0.0.1:8114"')
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.id = 0

    def call(self, method: str, *args: Any) -> Any:
        """Invoke ``method`` with positional ``args`` and return the raw result."""
        try:
            params = [_encode(arg) for arg in args] if args else None
        except TypeError as err:
            raise RpcJsonError(err) from err
        self.id += 1
        request = {"id": self.id, "jsonrpc": "2.0", "method": method, "params": params}
        try:
            response = self.session.post(self.url, json=request, timeout=self.timeout)
            output = response.json()
        except (requests.RequestException, ValueError) as err:
            raise RpcHttpError(err) from err
        if not isinstance(output, dict):
            raise RpcHttpError(f"invalid json-rpc response: {output!r}")
        if "error" in output:
            error = output["error"]
            if not isinstance(error, dict):
                raise RpcHttpError(f"invalid json-rpc error: {error!r}")
            raise RpcResponseError(
                int(error.get("code", -32603)), str(error.get("message", "")), error.get("data")
            )
        if "result" not in output:
            raise RpcHttpError(f"invalid json-rpc response: {output!r}")
        return output["result"]

    def _request(self, method: str, convert: Callable[[Any], Any], *args: Any) -> Any:
        result = self.call(method, *args)
        try:
            return convert(result)
        except (KeyError, ValueError, TypeError, AttributeError) as err:
            raise RpcJsonError(err) from err


class CkbRpcClient(JsonRpcClient):
    """Client for the CKB node RPC. Numbers are ints, hashes are bytes."""

    # Chain
    def get_block(self, hash_: bytes) -> Block | None:
        return self._request("get_block", _optional(Block.from_json), hash_)

    def get_block_by_number(self, number: int) -> Block | None:
        return self._request("get_block_by_number", _optional(Block.from_json), number)

    def get_block_hash(self, number: int) -> bytes | None:
        return self._request("get_block_hash", _optional(_hash), number)

    def get_current_epoch(self) -> dict[str, Any]:
        return self._request("get_current_epoch", _raw)

    def get_epoch_by_number(self, number: int) -> dict[str, Any] | None:
        return self._request("get_epoch_by_number", _raw, number)

    def get_header(self, hash_: bytes) -> Header | None:
        return self._request("get_header", _optional(Header.from_json), hash_)

    def get_header_by_number(self, number: int) -> Header | None:
        return self._request("get_header_by_number", _optional(Header.from_json), number)

    def get_live_cell(self, out_point: OutPoint, with_data: bool) -> dict[str, Any]:
        return self._request("get_live_cell", _raw, out_point, with_data)

    def get_tip_block_number(self) -> int:
        return self._request("get_tip_block_number", _int)

    def get_tip_header(self) -> Header:
        return self._request("get_tip_header", Header.from_json)

    def get_transaction(self, hash_: bytes) -> dict[str, Any] | None:
        return self._request("get_transaction", _raw, hash_)

    def get_transaction_proof(
        self, tx_hashes: list[bytes], block_hash: bytes | None
    ) -> dict[str, Any]:
        return self._request("get_transaction_proof", _raw, list(tx_hashes), block_hash)

    def verify_transaction_proof(self, tx_proof: dict[str, Any]) -> list[bytes]:
        return self._request("verify_transaction_proof", _list_of(_hash), tx_proof)

    def get_fork_block(self, block_hash: bytes) -> Block | None:
        return self._request("get_fork_block", _optional(Block.from_json), block_hash)

    def get_consensus(self) -> dict[str, Any]:
        return self._request("get_consensus", _raw)

    def get_block_median_time(self, block_hash: bytes) -> int | None:
        return self._request("get_block_median_time", _optional(_int), block_hash)

    def get_block_economic_state(self, block_hash: bytes) -> dict[str, Any] | None:
        return self._request("get_block_economic_state", _raw, block_hash)

    # Net
    def get_banned_addresses(self) -> list[dict[str, Any]]:
        return self._request("get_banned_addresses", _list_of(_raw))

    def get_peers(self) -> list[dict[str, Any]]:
        return self._request("get_peers", _list_of(_raw))

    def local_node_info(self) -> dict[str, Any]:
        return self._request("local_node_info", _raw)

    def set_ban(
        self,
        address: str,
        command: str,
        ban_time: int | None,
        absolute: bool | None,
        reason: str | None,
    ) -> None:
        self._request("set_ban", _unit, address, command, ban_time, absolute, reason)

    def sync_state(self) -> dict[str, Any]:
        return self._request("sync_state", _raw)

    def set_network_active(self, state: bool) -> None:
        self._request("set_network_active", _unit, state)

    def add_node(self, peer_id: str, address: str) -> None:
        self._request("add_node", _unit, peer_id, address)

    def remove_node(self, peer_id: str) -> None:
        self._request("remove_node", _unit, peer_id)

    def clear_banned_addresses(self) -> None:
        self._request("clear_banned_addresses", _unit)

    def ping_peers(self) -> None:
        self._request("ping_peers", _unit)

    # Pool
    def send_transaction(self, tx: Transaction, outputs_validator: str | None) -> bytes:
        return self._request("send_transaction", _hash, tx, outputs_validator)

    def remove_transaction(self, tx_hash: bytes) -> bool:
        return self._request("remove_transaction", _bool, tx_hash)

    def tx_pool_info(self) -> dict[str, Any]:
        return self._request("tx_pool_info", _raw)

    def clear_tx_pool(self) -> None:
        self._request("clear_tx_pool", _unit)

    def get_raw_tx_pool(self, verbose: bool | None) -> Any:
        return self._request("get_raw_tx_pool", _raw, verbose)

    def tx_pool_ready(self) -> bool:
        return self._request("tx_pool_ready", _bool)

    # Stats
    def get_blockchain_info(self) -> dict[str, Any]:
        return self._request("get_blockchain_info", _raw)

    # Miner
    def get_block_template(
        self, bytes_limit: int | None, proposals_limit: int | None, max_version: int | None
    ) -> dict[str, Any]:
        return self._request(
            "get_block_template", _raw, bytes_limit, proposals_limit, max_version
        )

    def submit_block(self, work_id: str, data: dict[str, Any]) -> bytes:
        return self._request("submit_block", _hash, work_id, data)

    # Alert
    def send_alert(self, alert: dict[str, Any]) -> None:
        self._request("send_alert", _unit, alert)

    # Integration test
    def process_block_without_verify(self, data: dict[str, Any], broadcast: bool) -> bytes | None:
        return self._request("process_block_without_verify", _optional(_hash), data, broadcast)

    def truncate(self, target_tip_hash: bytes) -> None:
        self._request("truncate", _unit, target_tip_hash)

    def generate_block(
        self, block_assembler_script: Script | None, block_assembler_message: bytes | None
    ) -> bytes:
        return self._request(
            "generate_block", _hash, block_assembler_script, block_assembler_message
        )

    def notify_transaction(self, tx: Transaction) -> bytes:
        return self._request("notify_transaction", _hash, tx)

    # Debug
    def jemalloc_profiling_dump(self) -> str:
        return self._request("jemalloc_profiling_dump", _str)

    def update_main_logger(self, config: dict[str, Any]) -> None:
        self._request("update_main_logger", _unit, config)

    def set_extra_logger(self, name: str, config_opt: dict[str, Any] | None) -> None:
        self._request("set_extra_logger", _unit, name, config_opt)