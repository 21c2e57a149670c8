"""Abstractions the transaction-building code relies on, and cell query options."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from ckbkit.packed import CellDep, CellOutput, Header, OutPoint, Script, Transaction

_U64_MAX = (1 << 64) - 1


class SignerError(Exception):
    """A signer failed; the message is shown as given."""


class IdNotFoundError(SignerError):
    def __init__(self) -> None:
        super().__init__("the id is not found in the signer")


class InvalidMessageError(SignerError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid message, reason: `{reason}`")


class InvalidTransactionError(SignerError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid transaction, reason: `{reason}`")


class TransactionDependencyError(Exception):
    """A transaction dependency could not be provided."""


class NotFoundError(TransactionDependencyError):
    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"the resource is not found in the provider: `{resource}`")


class CellCollectorError(Exception):
    """A cell collector failed; ``internal`` marks failures of the backend itself."""

    def __init__(self, message: object, internal: bool = False) -> None:
        self.internal = internal
        super().__init__(str(message))


class Signer(ABC):
    """Signs messages for the ids it holds keys for."""

    @abstractmethod
    def match_id(self, id_: bytes) -> bool:
        """Whether this signer can sign for ``id_``."""

    @abstractmethod
    def sign(self, id_: bytes, message: bytes, recoverable: bool, tx: Transaction) -> bytes:
        """Sign ``message`` with the key behind ``id_``."""


class TransactionDependencyProvider(ABC):
    """Provides the transactions, cells and headers a transaction depends on."""

    @abstractmethod
    def get_transaction(self, tx_hash: bytes) -> Transaction:
        """The transaction with hash ``tx_hash``."""

    @abstractmethod
    def get_cell(self, out_point: OutPoint) -> CellOutput:
        """The live cell at ``out_point``."""

    @abstractmethod
    def get_cell_data(self, out_point: OutPoint) -> bytes:
        """The data of the cell at ``out_point``."""

    @abstractmethod
    def get_header(self, block_hash: bytes) -> Header:
        """The header of the block with hash ``block_hash``."""


class CellCollector(ABC):
    """Collects live cells matching a query."""

    @abstractmethod
    def collect_live_cells(
        self, query: CellQueryOptions, apply_changes: bool
    ) -> tuple[list[LiveCell], int]:
        """Collect cells and their total capacity; with ``apply_changes`` mark them dead."""

    @abstractmethod
    def lock_cell(self, out_point: OutPoint) -> None:
        """Mark this cell as dead."""

    @abstractmethod
    def apply_tx(self, tx: Transaction) -> None:
        """Mark the inputs of ``tx`` as dead and its outputs as live."""

    @abstractmethod
    def reset(self) -> None:
        """Clear cached and locked cells."""


class CellDepResolver(ABC):
    @abstractmethod
    def resolve(self, script: Script) -> CellDep | None:
        """The cell dep that provides the code of ``script``."""


class HeaderDepResolver(ABC):
    @abstractmethod
    def resolve_by_tx(self, tx_hash: bytes) -> Header | None:
        """The header of the block holding the transaction ``tx_hash``."""

    @abstractmethod
    def resolve_by_number(self, number: int) -> Header | None:
        """The header of the block at height ``number``."""


@dataclass
class LiveCell:
    output: CellOutput
    output_data: bytes
    out_point: OutPoint
    block_number: int
    tx_index: int


@dataclass(frozen=True)
class ValueRangeOption:
    """The range ``start <= value < end``."""

    start: int
    end: int

    @classmethod
    def exact(cls, value: int) -> ValueRangeOption:
        return cls(value, value + 1)

    @classmethod
    def at_least(cls, start: int) -> ValueRangeOption:
        return cls(start, _U64_MAX)

    def match_value(self, value: int) -> bool:
        return self.start <= value < self.end


class PrimaryScriptType(Enum):
    """Primary search script; the secondary one is the other kind."""

    LOCK = "lock"
    TYPE = "type"


class MaturityOption(Enum):
    MATURE = "mature"
    IMMATURE = "immature"
    BOTH = "both"


class QueryOrder(Enum):
    DESC = "desc"
    ASC = "asc"


def is_mature(cell: LiveCell, max_mature_number: int) -> bool:
    """Non-cellbase cells and genesis cells are always mature."""
    return cell.tx_index > 0 or cell.block_number == 0 or cell.block_number <= max_mature_number


def _script_raw_data(script: Script) -> bytes:
    return script.code_hash + bytes([script.hash_type.value]) + script.args


@dataclass
class CellQueryOptions:
    """Filter for cell collection.

    ``min_total_capacity`` is the capacity to collect at least; the default of
    one shannon collects at most one cell.
    """

    primary_script: Script
    primary_type: PrimaryScriptType
    secondary_script: Script | None = None
    data_len_range: ValueRangeOption | None = None
    capacity_range: ValueRangeOption | None = None
    block_range: ValueRangeOption | None = None
    order: QueryOrder = QueryOrder.ASC
    limit: int | None = None
    maturity: MaturityOption = MaturityOption.MATURE
    min_total_capacity: int = 1

    @classmethod
    def for_lock(cls, primary_script: Script) -> CellQueryOptions:
        return cls(primary_script, PrimaryScriptType.LOCK)

    @classmethod
    def for_type(cls, primary_script: Script) -> CellQueryOptions:
        return cls(primary_script, PrimaryScriptType.TYPE)

    def match_cell(self, cell: LiveCell, max_mature_number: int) -> bool:
        prefix: bytes | None = None
        if self.secondary_script is not None:
            prefix = (
                _script_raw_data(self.secondary_script)
                if self.secondary_script != Script()
                else b""
            )
        output = cell.output
        if self.primary_type is PrimaryScriptType.LOCK:
            if output.lock != self.primary_script:
                return False
            if prefix is not None:
                if not prefix:
                    if output.type_ is not None:
                        return False
                elif output.type_ is None or not _script_raw_data(output.type_).startswith(
                    prefix
                ):
                    return False
        else:
            if output.type_ != self.primary_script:
                return False
            if prefix is not None and not _script_raw_data(output.lock).startswith(prefix):
                return False

        if self.data_len_range is not None and not self.data_len_range.match_value(
            len(cell.output_data)
        ):
            return False
        if self.capacity_range is not None and not self.capacity_range.match_value(
            output.capacity
        ):
            return False
        if self.block_range is not None and not self.block_range.match_value(cell.block_number):
            return False

        mature = is_mature(cell, max_mature_number)
        if self.maturity is MaturityOption.MATURE:
            return mature
        if self.maturity is MaturityOption.IMMATURE:
            return not mature
        return True