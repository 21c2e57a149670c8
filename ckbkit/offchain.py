"""Resolvers, collectors and providers that work on data held in memory."""

from __future__ import annotations

from dataclasses import dataclass, field

from ckbkit.packed import CellDep, CellOutput, Header, OutPoint, Script, ScriptId, Transaction
from ckbkit.traits import (
    CellCollector,
    CellDepResolver,
    CellQueryOptions,
    HeaderDepResolver,
    LiveCell,
    TransactionDependencyError,
    TransactionDependencyProvider,
)


@dataclass
class OffchainCellDepResolver(CellDepResolver):
    """Resolves cell deps from a mapping of script id to (cell dep, name)."""

    items: dict[ScriptId, tuple[CellDep, str]] = field(default_factory=dict)

    def resolve(self, script: Script) -> CellDep | None:
        entry = self.items.get(ScriptId.from_script(script))
        return entry[0] if entry is not None else None


@dataclass
class OffchainHeaderDepResolver(HeaderDepResolver):
    by_tx_hash: dict[bytes, Header] = field(default_factory=dict)
    by_number: dict[int, Header] = field(default_factory=dict)

    def resolve_by_tx(self, tx_hash: bytes) -> Header | None:
        return self.by_tx_hash.get(bytes(tx_hash))

    def resolve_by_number(self, number: int) -> Header | None:
        return self.by_number.get(number)


@dataclass
class OffchainCellCollector(CellCollector):
    """A cell collector that only uses cells held in memory."""

    locked_cells: set[tuple[bytes, int]] = field(default_factory=set)
    live_cells: list[LiveCell] = field(default_factory=list)
    max_mature_number: int = 0

    def collect(self, query: CellQueryOptions) -> tuple[list[LiveCell], list[LiveCell], int]:
        """Split live cells into (matched, rest) and return the matched capacity."""
        total_capacity = 0
        cells: list[LiveCell] = []
        rest: list[LiveCell] = []
        for cell in self.live_cells:
            if total_capacity < query.min_total_capacity and query.match_cell(
                cell, self.max_mature_number
            ):
                total_capacity += cell.output.capacity
                cells.append(cell)
            else:
                rest.append(cell)
        return cells, rest, total_capacity

    def collect_live_cells(
        self, query: CellQueryOptions, apply_changes: bool
    ) -> tuple[list[LiveCell], int]:
        cells, rest, total_capacity = self.collect(query)
        if apply_changes:
            self.live_cells = rest
            for cell in cells:
                self.lock_cell(cell.out_point)
        return cells, total_capacity

    def lock_cell(self, out_point: OutPoint) -> None:
        self.locked_cells.add((out_point.tx_hash, out_point.index))

    def apply_tx(self, tx: Transaction) -> None:
        tx_hash = tx.hash()
        for out_point in tx.input_out_points():
            self.lock_cell(out_point)
        for index, (output, data) in enumerate(tx.outputs_with_data()):
            self.live_cells.append(
                LiveCell(
                    output=output,
                    output_data=data,
                    out_point=OutPoint(tx_hash, index),
                    block_number=0,
                    tx_index=0,
                )
            )

    def reset(self) -> None:
        self.locked_cells.clear()
        self.live_cells.clear()


@dataclass
class OffchainTransactionDependencyProvider(TransactionDependencyProvider):
    txs: dict[bytes, Transaction] = field(default_factory=dict)
    cells: dict[tuple[bytes, int], tuple[CellOutput, bytes]] = field(default_factory=dict)
    headers: dict[bytes, Header] = field(default_factory=dict)

    def get_transaction(self, tx_hash: bytes) -> Transaction:
        try:
            return self.txs[bytes(tx_hash)]
        except KeyError:
            raise TransactionDependencyError("offchain get_transaction") from None

    def _cell(self, out_point: OutPoint, what: str) -> tuple[CellOutput, bytes]:
        try:
            return self.cells[(out_point.tx_hash, out_point.index)]
        except KeyError:
            raise TransactionDependencyError(f"offchain {what}") from None

    def get_cell(self, out_point: OutPoint) -> CellOutput:
        return self._cell(out_point, "get_cell")[0]

    def get_cell_data(self, out_point: OutPoint) -> bytes:
        return self._cell(out_point, "get_cell_data")[1]

    def get_header(self, block_hash: bytes) -> Header:
        try:
            return self.headers[bytes(block_hash)]
        except KeyError:
            raise TransactionDependencyError("offchain get_header") from None