"""Default resolvers and providers: genesis-based cell deps and node RPC backed lookups."""

from __future__ import annotations

import json
import threading
from typing import Any, Generic, Hashable, TypeVar

from cachetools import LRUCache

from ckbkit.constants import (
    DAO_OUTPUT_LOC,
    DAO_TYPE_HASH,
    MULTISIG_GROUP_OUTPUT_LOC,
    MULTISIG_OUTPUT_LOC,
    MULTISIG_TYPE_HASH,
    SIGHASH_GROUP_OUTPUT_LOC,
    SIGHASH_OUTPUT_LOC,
    SIGHASH_TYPE_HASH,
)
from ckbkit.offchain import OffchainCellDepResolver
from ckbkit.packed import (
    Block,
    CellDep,
    CellOutput,
    DepType,
    Header,
    OutPoint,
    Script,
    ScriptId,
    Transaction,
)
from ckbkit.rpc import CkbRpcClient, RpcError
from ckbkit.traits import (
    CellDepResolver,
    HeaderDepResolver,
    NotFoundError,
    TransactionDependencyError,
    TransactionDependencyProvider,
)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ParseGenesisInfoError(Exception):
    """The genesis block does not hold the expected system cells."""


class InvalidBlockNumberError(ParseGenesisInfoError):
    def __init__(self, number: int) -> None:
        self.number = number
        super().__init__(f"invalid block number, expected: 0, got: `{number}`")


class DataHashNotFoundError(ParseGenesisInfoError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"data not found: `{detail}`")


class TypeHashNotFoundError(ParseGenesisInfoError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"type not found: `{detail}`")


def _type_hash(output: CellOutput) -> bytes | None:
    return output.type_.calc_script_hash() if output.type_ is not None else None


class DefaultCellDepResolver(CellDepResolver):
    """Resolves system scripts from genesis info; more cell deps can be registered."""

    def __init__(self, items: dict[ScriptId, tuple[CellDep, str]] | None = None) -> None:
        self._offchain = OffchainCellDepResolver(items=dict(items or {}))

    @classmethod
    def from_genesis(cls, genesis_block: Block) -> DefaultCellDepResolver:
        number = genesis_block.header.number
        if number != 0:
            raise InvalidBlockNumberError(number)

        out_points: list[list[OutPoint]] = []
        type_hashes: dict[tuple[int, int], bytes | None] = {}
        wanted = {SIGHASH_OUTPUT_LOC, MULTISIG_OUTPUT_LOC, DAO_OUTPUT_LOC}
        for tx_index, tx in enumerate(genesis_block.transactions):
            tx_hash = tx.hash()
            points = []
            for index, (output, _data) in enumerate(tx.outputs_with_data()):
                if (tx_index, index) in wanted:
                    type_hashes[(tx_index, index)] = _type_hash(output)
                points.append(OutPoint(tx_hash, index))
            out_points.append(points)

        def found(loc: tuple[int, int], name: str) -> bytes:
            value = type_hashes.get(loc)
            if value is None:
                raise TypeHashNotFoundError(
                    f"No type hash({name}) found in txs[{loc[0]}][{loc[1]}]"
                )
            return value

        sighash_type_hash = found(SIGHASH_OUTPUT_LOC, "sighash")
        multisig_type_hash = found(MULTISIG_OUTPUT_LOC, "multisig")
        dao_type_hash = found(DAO_OUTPUT_LOC, "dao")

        def point(loc: tuple[int, int]) -> OutPoint:
            try:
                return out_points[loc[0]][loc[1]]
            except IndexError:
                raise ParseGenesisInfoError(
                    f"no output found in txs[{loc[0]}][{loc[1]}]"
                ) from None

        sighash_dep = CellDep(point(SIGHASH_GROUP_OUTPUT_LOC), DepType.DEP_GROUP)
        multisig_dep = CellDep(point(MULTISIG_GROUP_OUTPUT_LOC), DepType.DEP_GROUP)
        dao_dep = CellDep(point(DAO_OUTPUT_LOC))

        return cls(
            {
                ScriptId.new_type(sighash_type_hash): (
                    sighash_dep,
                    "Secp256k1 blake160 sighash all",
                ),
                ScriptId.new_type(multisig_type_hash): (
                    multisig_dep,
                    "Secp256k1 blake160 multisig all",
                ),
                ScriptId.new_type(dao_type_hash): (dao_dep, "Nervos DAO"),
            }
        )

    def insert(
        self, script_id: ScriptId, cell_dep: CellDep, name: str
    ) -> tuple[CellDep, str] | None:
        """Register a cell dep; return the entry it replaced, if any."""
        previous = self._offchain.items.get(script_id)
        self._offchain.items[script_id] = (cell_dep, name)
        return previous

    def remove(self, script_id: ScriptId) -> tuple[CellDep, str] | None:
        return self._offchain.items.pop(script_id, None)

    def contains(self, script_id: ScriptId) -> bool:
        return script_id in self._offchain.items

    def get(self, script_id: ScriptId) -> tuple[CellDep, str] | None:
        return self._offchain.items.get(script_id)

    def sighash_dep(self) -> tuple[CellDep, str] | None:
        return self.get(ScriptId.new_type(SIGHASH_TYPE_HASH))

    def multisig_dep(self) -> tuple[CellDep, str] | None:
        return self.get(ScriptId.new_type(MULTISIG_TYPE_HASH))

    def dao_dep(self) -> tuple[CellDep, str] | None:
        return self.get(ScriptId.new_type(DAO_TYPE_HASH))

    def resolve(self, script: Script) -> CellDep | None:
        return self._offchain.resolve(script)


def _parse_hash(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"expected hex string, got {value!r}")
    data = bytes.fromhex(value[2:])
    if len(data) != 32:
        raise ValueError(f"expected 32 bytes hash, got {len(data)}")
    return data


def _parse_bytes(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"expected hex string, got {value!r}")
    return bytes.fromhex(value[2:])


class DefaultHeaderDepResolver(HeaderDepResolver):
    """Resolves header deps through the node RPC."""

    def __init__(self, ckb_client: str) -> None:
        self._client = CkbRpcClient(ckb_client)
        self._lock = threading.Lock()

    def resolve_by_tx(self, tx_hash: bytes) -> Header | None:
        with self._lock:
            tx_with_status = self._client.get_transaction(bytes(tx_hash))
            if tx_with_status is None:
                return None
            block_hash = (tx_with_status.get("tx_status") or {}).get("block_hash")
            if block_hash is None:
                return None
            return self._client.get_header(_parse_hash(block_hash))

    def resolve_by_number(self, number: int) -> Header | None:
        with self._lock:
            return self._client.get_header_by_number(number)


class _Cache(Generic[K, V]):
    """An LRU cache that stores nothing when its capacity is 0."""

    def __init__(self, capacity: int) -> None:
        self._cache: LRUCache | None = LRUCache(maxsize=capacity) if capacity > 0 else None

    def get(self, key: K) -> V | None:
        if self._cache is None:
            return None
        return self._cache.get(key)

    def put(self, key: K, value: V) -> None:
        if self._cache is not None:
            self._cache[key] = value


class DefaultTransactionDependencyProvider(TransactionDependencyProvider):
    """Provides transaction dependencies through the node RPC, with LRU caches.

    A ``cache_capacity`` of 0 disables caching.
    """

    def __init__(self, url: str, cache_capacity: int) -> None:
        self._client = CkbRpcClient(url)
        self._lock = threading.Lock()
        self._tx_cache: _Cache[bytes, Transaction] = _Cache(cache_capacity)
        self._cell_cache: _Cache[OutPoint, tuple[CellOutput, bytes]] = _Cache(cache_capacity)
        self._header_cache: _Cache[bytes, Header] = _Cache(cache_capacity)

    def get_cell_with_data(self, out_point: OutPoint) -> tuple[CellOutput, bytes]:
        with self._lock:
            cached = self._cell_cache.get(out_point)
            if cached is not None:
                return cached
            try:
                cell_with_status = self._client.get_live_cell(out_point, True)
            except RpcError as err:
                raise TransactionDependencyError(str(err)) from err
            status = cell_with_status.get("status") if isinstance(cell_with_status, dict) else None
            if status != "live":
                raise TransactionDependencyError(f"invalid cell status: {json.dumps(status)}")
            try:
                cell = cell_with_status["cell"]
                output = CellOutput.from_json(cell["output"])
                data = _parse_bytes(cell["data"]["content"])
            except (KeyError, TypeError, ValueError) as err:
                raise TransactionDependencyError(f"invalid live cell: {err}") from err
            self._cell_cache.put(out_point, (output, data))
            return output, data

    def get_transaction(self, tx_hash: bytes) -> Transaction:
        key = bytes(tx_hash)
        with self._lock:
            cached = self._tx_cache.get(key)
            if cached is not None:
                return cached
            try:
                tx_with_status = self._client.get_transaction(key)
            except RpcError as err:
                raise TransactionDependencyError(str(err)) from err
            if tx_with_status is None:
                raise NotFoundError("transaction")
            tx_status = tx_with_status.get("tx_status") or {}
            if tx_status.get("status") != "committed":
                raise TransactionDependencyError(f"invalid transaction status: {tx_status}")
            try:
                tx = Transaction.from_json(tx_with_status["transaction"])
            except (KeyError, TypeError, ValueError) as err:
                raise TransactionDependencyError(f"invalid transaction: {err}") from err
            self._tx_cache.put(key, tx)
            return tx

    def get_cell(self, out_point: OutPoint) -> CellOutput:
        return self.get_cell_with_data(out_point)[0]

    def get_cell_data(self, out_point: OutPoint) -> bytes:
        return self.get_cell_with_data(out_point)[1]

    def get_header(self, block_hash: bytes) -> Header:
        key = bytes(block_hash)
        with self._lock:
            cached = self._header_cache.get(key)
            if cached is not None:
                return cached
            try:
                header = self._client.get_header(key)
            except RpcError as err:
                raise TransactionDependencyError(str(err)) from err
            if header is None:
                raise NotFoundError("header")
            self._header_cache.put(key, header)
            return header