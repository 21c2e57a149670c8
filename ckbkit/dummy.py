"""Implementations that fail on every call, for code paths that must not use them."""

from __future__ import annotations

from ckbkit.packed import CellOutput, Header, OutPoint, Transaction
from ckbkit.traits import (
    CellCollector,
    CellCollectorError,
    CellQueryOptions,
    HeaderDepResolver,
    LiveCell,
    TransactionDependencyError,
    TransactionDependencyProvider,
)


class DummyCellCollector(CellCollector):
    """A cell collector whose methods all fail, except ``reset``."""

    def collect_live_cells(
        self, query: CellQueryOptions, apply_changes: bool
    ) -> tuple[list[LiveCell], int]:
        raise CellCollectorError("dummy collect_live_cells")

    def lock_cell(self, out_point: OutPoint) -> None:
        raise CellCollectorError("dummy lock_cell")

    def apply_tx(self, tx: Transaction) -> None:
        raise CellCollectorError("dummy apply_tx")

    def reset(self) -> None:
        pass


class DummyHeaderDepResolver(HeaderDepResolver):
    """A header dep resolver whose methods all fail."""

    def resolve_by_tx(self, tx_hash: bytes) -> Header | None:
        raise RuntimeError("dummy resolve_by_tx")

    def resolve_by_number(self, number: int) -> Header | None:
        raise RuntimeError("dummy resolve_by_number")


class DummyTransactionDependencyProvider(TransactionDependencyProvider):
    """A transaction dependency provider whose methods all fail."""

    def get_transaction(self, tx_hash: bytes) -> Transaction:
        raise TransactionDependencyError("dummy get_transaction")

    def get_cell(self, out_point: OutPoint) -> CellOutput:
        raise TransactionDependencyError("dummy get_cell")

    def get_cell_data(self, out_point: OutPoint) -> bytes:
        raise TransactionDependencyError("dummy get_cell_data")

    def get_header(self, block_hash: bytes) -> Header:
        raise TransactionDependencyError("dummy get_header")