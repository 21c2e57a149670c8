"""Core chain data types with molecule serialization, hashing and JSON conversion."""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from ckbkit.constants import ONE_CKB

_PERSONALIZATION = b"ckb-default-hash"
_ZERO_HASH = bytes(32)


def blake2b_256(data: bytes) -> bytes:
    """Return the 32-byte CKB blake2b hash of ``data``."""
    return hashlib.blake2b(bytes(data), digest_size=32, person=_PERSONALIZATION).digest()


def _check_hash(name: str, value: bytes) -> bytes:
    value = bytes(value)
    if len(value) != 32:
        raise ValueError(f"{name} must be 32 bytes, got {len(value)}")
    return value


def _hex_bytes(value: str) -> bytes:
    if not value.startswith("0x"):
        raise ValueError(f"hex string must start with 0x: {value!r}")
    return bytes.fromhex(value[2:])


def _hex_int(value: str) -> int:
    if not value.startswith("0x"):
        raise ValueError(f"hex number must start with 0x: {value!r}")
    return int(value, 16)


def _to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def _u32(value: int) -> bytes:
    return struct.pack("<I", value)


def _u64(value: int) -> bytes:
    return struct.pack("<Q", value)


def _fixvec_bytes(data: bytes) -> bytes:
    return _u32(len(data)) + bytes(data)


def _fixvec(items: list[bytes]) -> bytes:
    return _u32(len(items)) + b"".join(items)


def _table(parts: list[bytes]) -> bytes:
    header_size = 4 * (1 + len(parts))
    offsets = []
    offset = header_size
    for part in parts:
        offsets.append(offset)
        offset += len(part)
    return _u32(offset) + b"".join(_u32(o) for o in offsets) + b"".join(parts)


class HashType(Enum):
    """How a script's code hash is matched against cells."""

    DATA = 0
    TYPE = 1
    DATA1 = 2


class DepType(Enum):
    """Kind of a cell dependency."""

    CODE = 0
    DEP_GROUP = 1


@dataclass(frozen=True)
class Script:
    """A lock or type script."""

    code_hash: bytes = _ZERO_HASH
    hash_type: HashType = HashType.DATA
    args: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "code_hash", _check_hash("code_hash", self.code_hash))
        object.__setattr__(self, "args", bytes(self.args))

    def to_bytes(self) -> bytes:
        """Molecule serialization."""
        return _table(
            [self.code_hash, bytes([self.hash_type.value]), _fixvec_bytes(self.args)]
        )

    def calc_script_hash(self) -> bytes:
        return blake2b_256(self.to_bytes())

    def _occupied_bytes(self) -> int:
        return 32 + 1 + len(self.args)

    def to_json(self) -> dict[str, Any]:
        return {
            "code_hash": _to_hex(self.code_hash),
            "hash_type": self.hash_type.name.lower(),
            "args": _to_hex(self.args),
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> Script:
        return cls(
            code_hash=_hex_bytes(value["code_hash"]),
            hash_type=HashType[value["hash_type"].upper()],
            args=_hex_bytes(value["args"]),
        )


@dataclass(frozen=True)
class OutPoint:
    """Reference to one output of a transaction."""

    tx_hash: bytes = _ZERO_HASH
    index: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "tx_hash", _check_hash("tx_hash", self.tx_hash))

    def to_bytes(self) -> bytes:
        return self.tx_hash + _u32(self.index)

    def to_json(self) -> dict[str, Any]:
        return {"tx_hash": _to_hex(self.tx_hash), "index": hex(self.index)}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> OutPoint:
        return cls(tx_hash=_hex_bytes(value["tx_hash"]), index=_hex_int(value["index"]))


@dataclass(frozen=True)
class CellInput:
    """A transaction input."""

    previous_output: OutPoint
    since: int = 0

    def _to_bytes(self) -> bytes:
        return _u64(self.since) + self.previous_output.to_bytes()

    def to_json(self) -> dict[str, Any]:
        return {"since": hex(self.since), "previous_output": self.previous_output.to_json()}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> CellInput:
        return cls(
            previous_output=OutPoint.from_json(value["previous_output"]),
            since=_hex_int(value["since"]),
        )


@dataclass(frozen=True)
class CellDep:
    """A cell dependency of a transaction."""

    out_point: OutPoint
    dep_type: DepType = DepType.CODE

    def _to_bytes(self) -> bytes:
        return self.out_point.to_bytes() + bytes([self.dep_type.value])

    def to_json(self) -> dict[str, Any]:
        return {"out_point": self.out_point.to_json(), "dep_type": self.dep_type.name.lower()}

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> CellDep:
        return cls(
            out_point=OutPoint.from_json(value["out_point"]),
            dep_type=DepType[value["dep_type"].upper()],
        )


@dataclass(frozen=True)
class CellOutput:
    """A cell: capacity, lock script and optional type script."""

    capacity: int = 0
    lock: Script = field(default_factory=Script)
    type_: Script | None = None

    def _to_bytes(self) -> bytes:
        type_bytes = self.type_.to_bytes() if self.type_ is not None else b""
        return _table([_u64(self.capacity), self.lock.to_bytes(), type_bytes])

    def occupied_capacity(self, data_len: int) -> int:
        """Capacity in shannons this cell needs when holding ``data_len`` bytes of data."""
        size = 8 + self.lock._occupied_bytes() + data_len
        if self.type_ is not None:
            size += self.type_._occupied_bytes()
        return size * ONE_CKB

    @staticmethod
    def calc_data_hash(data: bytes) -> bytes:
        """Hash of cell data; empty data hashes to all zeros."""
        if not data:
            return _ZERO_HASH
        return blake2b_256(data)

    def to_json(self) -> dict[str, Any]:
        return {
            "capacity": hex(self.capacity),
            "lock": self.lock.to_json(),
            "type": self.type_.to_json() if self.type_ is not None else None,
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> CellOutput:
        type_json = value.get("type")
        return cls(
            capacity=_hex_int(value["capacity"]),
            lock=Script.from_json(value["lock"]),
            type_=Script.from_json(type_json) if type_json is not None else None,
        )


@dataclass
class Transaction:
    """A transaction with its witnesses."""

    version: int = 0
    cell_deps: list[CellDep] = field(default_factory=list)
    header_deps: list[bytes] = field(default_factory=list)
    inputs: list[CellInput] = field(default_factory=list)
    outputs: list[CellOutput] = field(default_factory=list)
    outputs_data: list[bytes] = field(default_factory=list)
    witnesses: list[bytes] = field(default_factory=list)

    def _raw_bytes(self) -> bytes:
        return _table(
            [
                _u32(self.version),
                _fixvec([dep._to_bytes() for dep in self.cell_deps]),
                _fixvec([_check_hash("header_dep", h) for h in self.header_deps]),
                _fixvec([inp._to_bytes() for inp in self.inputs]),
                _table([out._to_bytes() for out in self.outputs]),
                _table([_fixvec_bytes(data) for data in self.outputs_data]),
            ]
        )

    def hash(self) -> bytes:
        """Transaction hash: the hash of the raw transaction without witnesses."""
        return blake2b_256(self._raw_bytes())

    def input_out_points(self) -> Iterator[OutPoint]:
        return (inp.previous_output for inp in self.inputs)

    def outputs_with_data(self) -> Iterator[tuple[CellOutput, bytes]]:
        return zip(self.outputs, self.outputs_data)

    def to_json(self) -> dict[str, Any]:
        return {
            "version": hex(self.version),
            "cell_deps": [dep.to_json() for dep in self.cell_deps],
            "header_deps": [_to_hex(h) for h in self.header_deps],
            "inputs": [inp.to_json() for inp in self.inputs],
            "outputs": [out.to_json() for out in self.outputs],
            "outputs_data": [_to_hex(d) for d in self.outputs_data],
            "witnesses": [_to_hex(w) for w in self.witnesses],
        }

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> Transaction:
        return cls(
            version=_hex_int(value["version"]),
            cell_deps=[CellDep.from_json(d) for d in value.get("cell_deps", [])],
            header_deps=[_hex_bytes(h) for h in value.get("header_deps", [])],
            inputs=[CellInput.from_json(i) for i in value.get("inputs", [])],
            outputs=[CellOutput.from_json(o) for o in value.get("outputs", [])],
            outputs_data=[_hex_bytes(d) for d in value.get("outputs_data", [])],
            witnesses=[_hex_bytes(w) for w in value.get("witnesses", [])],
        )


@dataclass(frozen=True)
class Header:
    """A block header."""

    version: int
    compact_target: int
    timestamp: int
    number: int
    epoch: int
    parent_hash: bytes
    transactions_root: bytes
    proposals_hash: bytes
    extra_hash: bytes
    dao: bytes
    nonce: int
    hash: bytes

    @staticmethod
    def _calc_hash(fields: dict[str, Any]) -> bytes:
        raw = (
            _u32(fields["version"])
            + _u32(fields["compact_target"])
            + _u64(fields["timestamp"])
            + _u64(fields["number"])
            + _u64(fields["epoch"])
            + fields["parent_hash"]
            + fields["transactions_root"]
            + fields["proposals_hash"]
            + fields["extra_hash"]
            + fields["dao"]
        )
        return blake2b_256(raw + fields["nonce"].to_bytes(16, "little"))

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> Header:
        extra = value.get("extra_hash", value.get("uncles_hash"))
        if extra is None:
            raise KeyError("extra_hash")
        fields: dict[str, Any] = {
            "version": _hex_int(value["version"]),
            "compact_target": _hex_int(value["compact_target"]),
            "timestamp": _hex_int(value["timestamp"]),
            "number": _hex_int(value["number"]),
            "epoch": _hex_int(value["epoch"]),
            "parent_hash": _check_hash("parent_hash", _hex_bytes(value["parent_hash"])),
            "transactions_root": _check_hash(
                "transactions_root", _hex_bytes(value["transactions_root"])
            ),
            "proposals_hash": _check_hash(
                "proposals_hash", _hex_bytes(value["proposals_hash"])
            ),
            "extra_hash": _check_hash("extra_hash", _hex_bytes(extra)),
            "dao": _check_hash("dao", _hex_bytes(value["dao"])),
            "nonce": _hex_int(value["nonce"]),
        }
        if "hash" in value:
            block_hash = _check_hash("hash", _hex_bytes(value["hash"]))
        else:
            block_hash = cls._calc_hash(fields)
        return cls(hash=block_hash, **fields)


@dataclass
class Block:
    """A block: header, transactions, uncle headers and proposals."""

    header: Header
    transactions: list[Transaction] = field(default_factory=list)
    uncles: list[Header] = field(default_factory=list)
    proposals: list[bytes] = field(default_factory=list)

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> Block:
        return cls(
            header=Header.from_json(value["header"]),
            transactions=[Transaction.from_json(t) for t in value.get("transactions", [])],
            uncles=[Header.from_json(u["header"]) for u in value.get("uncles", [])],
            proposals=[_hex_bytes(p) for p in value.get("proposals", [])],
        )


@dataclass(frozen=True)
class ScriptId:
    """Identifies a script program by code hash and hash type."""

    code_hash: bytes
    hash_type: HashType

    def __post_init__(self) -> None:
        object.__setattr__(self, "code_hash", _check_hash("code_hash", self.code_hash))

    @classmethod
    def new_type(cls, code_hash: bytes) -> ScriptId:
        return cls(code_hash, HashType.TYPE)

    @classmethod
    def new_data(cls, code_hash: bytes) -> ScriptId:
        return cls(code_hash, HashType.DATA)

    @classmethod
    def from_script(cls, script: Script) -> ScriptId:
        return cls(script.code_hash, script.hash_type)