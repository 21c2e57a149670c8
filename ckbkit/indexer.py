"""Search keys, result types and an HTTP client for the CKB cell indexer RPC."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from ckbkit.packed import CellOutput, OutPoint, Script
from ckbkit.rpc import JsonRpcClient
from ckbkit.traits import CellQueryOptions, LiveCell, ValueRangeOption

T = TypeVar("T")


def _int(value: Any) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"expected hex number, got {value!r}")
    return int(value, 16)


def _bytes(value: Any) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"expected hex string, got {value!r}")
    return bytes.fromhex(value[2:])


def _hash(value: Any) -> bytes:
    data = _bytes(value)
    if len(data) != 32:
        raise ValueError(f"expected 32 bytes hash, got {len(data)}")
    return data


def _range_json(value: ValueRangeOption | None) -> list[str] | None:
    if value is None:
        return None
    return [hex(value.start), hex(value.end)]


class ScriptType(Enum):
    LOCK = "lock"
    TYPE = "type"


class Order(Enum):
    DESC = "desc"
    ASC = "asc"


class IOType(Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass
class SearchKeyFilter:
    script: Script | None = None
    output_data_len_range: ValueRangeOption | None = None
    output_capacity_range: ValueRangeOption | None = None
    block_range: ValueRangeOption | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "script": self.script.to_json() if self.script is not None else None,
            "output_data_len_range": _range_json(self.output_data_len_range),
            "output_capacity_range": _range_json(self.output_capacity_range),
            "block_range": _range_json(self.block_range),
        }


@dataclass
class SearchKey:
    script: Script
    script_type: ScriptType
    filter: SearchKeyFilter | None = None

    @classmethod
    def from_query(cls, opts: CellQueryOptions) -> SearchKey:
        """Build the indexer search key that corresponds to cell query options."""
        if (
            opts.secondary_script is None
            and opts.data_len_range is None
            and opts.capacity_range is None
            and opts.block_range is None
        ):
            search_filter = None
        else:
            search_filter = SearchKeyFilter(
                script=opts.secondary_script,
                output_data_len_range=opts.data_len_range,
                output_capacity_range=opts.capacity_range,
                block_range=opts.block_range,
            )
        return cls(
            script=opts.primary_script,
            script_type=ScriptType(opts.primary_type.value),
            filter=search_filter,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "script": self.script.to_json(),
            "script_type": self.script_type.value,
            "filter": self.filter.to_json() if self.filter is not None else None,
        }


@dataclass(frozen=True)
class Tip:
    block_hash: bytes
    block_number: int

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> Tip:
        return cls(_hash(value["block_hash"]), _int(value["block_number"]))


@dataclass(frozen=True)
class CellsCapacity:
    capacity: int
    block_hash: bytes
    block_number: int

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> CellsCapacity:
        return cls(
            capacity=_int(value["capacity"]),
            block_hash=_hash(value["block_hash"]),
            block_number=_int(value["block_number"]),
        )


@dataclass(frozen=True)
class IndexerCell:
    output: CellOutput
    output_data: bytes
    out_point: OutPoint
    block_number: int
    tx_index: int

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> IndexerCell:
        return cls(
            output=CellOutput.from_json(value["output"]),
            output_data=_bytes(value["output_data"]),
            out_point=OutPoint.from_json(value["out_point"]),
            block_number=_int(value["block_number"]),
            tx_index=_int(value["tx_index"]),
        )

    def to_live_cell(self) -> LiveCell:
        return LiveCell(
            output=self.output,
            output_data=self.output_data,
            out_point=self.out_point,
            block_number=self.block_number,
            tx_index=self.tx_index,
        )


@dataclass(frozen=True)
class IndexerTx:
    tx_hash: bytes
    block_number: int
    tx_index: int
    io_index: int
    io_type: IOType

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> IndexerTx:
        return cls(
            tx_hash=_hash(value["tx_hash"]),
            block_number=_int(value["block_number"]),
            tx_index=_int(value["tx_index"]),
            io_index=_int(value["io_index"]),
            io_type=IOType(value["io_type"]),
        )


@dataclass
class Pagination(Generic[T]):
    objects: list[T] = field(default_factory=list)
    last_cursor: bytes = b""


def _pagination(convert: Callable[[Any], T]) -> Callable[[Any], Pagination[T]]:
    def wrapped(value: Any) -> Pagination[T]:
        return Pagination(
            objects=[convert(item) for item in value["objects"]],
            last_cursor=_bytes(value["last_cursor"]),
        )

    return wrapped


def _optional(convert: Callable[[Any], T]) -> Callable[[Any], T | None]:
    def wrapped(value: Any) -> T | None:
        return None if value is None else convert(value)

    return wrapped


class IndexerRpcClient(JsonRpcClient):
    """Client for the cell indexer RPC."""

    def get_indexer_tip(self) -> Tip | None:
        return self._request("get_indexer_tip", _optional(Tip.from_json))

    def get_cells(
        self, search_key: SearchKey, order: Order, limit: int, after: bytes | None
    ) -> Pagination[IndexerCell]:
        return self._request(
            "get_cells",
            _pagination(IndexerCell.from_json),
            search_key,
            order.value,
            limit,
            after,
        )

    def get_transactions(
        self, search_key: SearchKey, order: Order, limit: int, after: bytes | None
    ) -> Pagination[IndexerTx]:
        return self._request(
            "get_transactions",
            _pagination(IndexerTx.from_json),
            search_key,
            order.value,
            limit,
            after,
        )

    def get_cells_capacity(self, search_key: SearchKey) -> CellsCapacity | None:
        return self._request(
            "get_cells_capacity", _optional(CellsCapacity.from_json), search_key
        )