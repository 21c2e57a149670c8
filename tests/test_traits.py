import pytest

from ckbkit.constants import ONE_CKB, SIGHASH_TYPE_HASH
from ckbkit.packed import CellOutput, HashType, OutPoint, Script
from ckbkit.traits import (
    CellCollector,
    CellCollectorError,
    CellQueryOptions,
    IdNotFoundError,
    InvalidMessageError,
    InvalidTransactionError,
    LiveCell,
    MaturityOption,
    NotFoundError,
    PrimaryScriptType,
    QueryOrder,
    Signer,
    SignerError,
    TransactionDependencyError,
    ValueRangeOption,
    is_mature,
)

LOCK = Script(code_hash=SIGHASH_TYPE_HASH, hash_type=HashType.TYPE, args=b"\x01" * 20)
OTHER_LOCK = Script(code_hash=SIGHASH_TYPE_HASH, hash_type=HashType.TYPE, args=b"\x02" * 20)
TYPE_SCRIPT = Script(code_hash=b"\x07" * 32, hash_type=HashType.TYPE, args=b"abc")


def make_cell(lock=LOCK, type_=None, capacity=100 * ONE_CKB, data=b"", block_number=10, tx_index=1):
    return LiveCell(
        output=CellOutput(capacity=capacity, lock=lock, type_=type_),
        output_data=data,
        out_point=OutPoint(b"\x05" * 32, 0),
        block_number=block_number,
        tx_index=tx_index,
    )


def test_signer_error_messages():
    assert str(IdNotFoundError()) == "the id is not found in the signer"
    assert str(InvalidMessageError("InvalidMessage")) == "invalid message, reason: `InvalidMessage`"
    assert (
        str(InvalidTransactionError("InvalidTransaction"))
        == "invalid transaction, reason: `InvalidTransaction`"
    )
    assert str(SignerError("Other")) == "Other"
    assert isinstance(IdNotFoundError(), SignerError)


def test_transaction_dependency_error_message():
    error = NotFoundError("NotFound")
    assert str(error) == "the resource is not found in the provider: `NotFound`"
    assert isinstance(error, TransactionDependencyError)


def test_cell_collector_error_message():
    internal = CellCollectorError("Internel", internal=True)
    assert str(internal) == "Internel"
    assert internal.internal is True
    other = CellCollectorError("Other")
    assert str(other) == "Other"
    assert other.internal is False


def test_value_range_option():
    r = ValueRangeOption(3, 5)
    assert [r.match_value(v) for v in (2, 3, 4, 5)] == [False, True, True, False]
    exact = ValueRangeOption.exact(7)
    assert exact == ValueRangeOption(7, 8)
    assert exact.match_value(7) and not exact.match_value(8)
    assert ValueRangeOption.at_least(10).end == 2**64 - 1


def test_query_defaults():
    q = CellQueryOptions.for_lock(LOCK)
    assert q.primary_type is PrimaryScriptType.LOCK
    assert q.order is QueryOrder.ASC
    assert q.maturity is MaturityOption.MATURE
    assert q.min_total_capacity == 1
    assert q.limit is None
    assert CellQueryOptions.for_type(TYPE_SCRIPT).primary_type is PrimaryScriptType.TYPE


def test_is_mature():
    assert is_mature(make_cell(tx_index=1, block_number=100), 0) is True
    assert is_mature(make_cell(tx_index=0, block_number=0), 0) is True
    assert is_mature(make_cell(tx_index=0, block_number=50), 50) is True
    assert is_mature(make_cell(tx_index=0, block_number=51), 50) is False


def test_match_lock_primary():
    q = CellQueryOptions.for_lock(LOCK)
    assert q.match_cell(make_cell(), 0) is True
    assert q.match_cell(make_cell(lock=OTHER_LOCK), 0) is False


def test_match_secondary_default_requires_no_type():
    q = CellQueryOptions.for_lock(LOCK)
    q.secondary_script = Script()
    assert q.match_cell(make_cell(), 0) is True
    assert q.match_cell(make_cell(type_=TYPE_SCRIPT), 0) is False


def test_match_secondary_prefix():
    q = CellQueryOptions.for_lock(LOCK)
    q.secondary_script = Script(code_hash=b"\x07" * 32, hash_type=HashType.TYPE, args=b"ab")
    assert q.match_cell(make_cell(type_=TYPE_SCRIPT), 0) is True
    assert q.match_cell(make_cell(), 0) is False
    q.secondary_script = Script(code_hash=b"\x07" * 32, hash_type=HashType.DATA, args=b"")
    assert q.match_cell(make_cell(type_=TYPE_SCRIPT), 0) is False


def test_match_type_primary():
    q = CellQueryOptions.for_type(TYPE_SCRIPT)
    assert q.match_cell(make_cell(type_=TYPE_SCRIPT), 0) is True
    assert q.match_cell(make_cell(), 0) is False
    q.secondary_script = Script(code_hash=SIGHASH_TYPE_HASH, hash_type=HashType.TYPE, args=b"\x01")
    assert q.match_cell(make_cell(type_=TYPE_SCRIPT), 0) is True
    assert q.match_cell(make_cell(lock=OTHER_LOCK, type_=TYPE_SCRIPT), 0) is False


def test_match_ranges():
    q = CellQueryOptions.for_lock(LOCK)
    q.capacity_range = ValueRangeOption(0, 100 * ONE_CKB)
    assert q.match_cell(make_cell(capacity=100 * ONE_CKB), 0) is False
    assert q.match_cell(make_cell(capacity=99 * ONE_CKB), 0) is True
    q = CellQueryOptions.for_lock(LOCK)
    q.data_len_range = ValueRangeOption.exact(0)
    assert q.match_cell(make_cell(data=b""), 0) is True
    assert q.match_cell(make_cell(data=b"x"), 0) is False
    q = CellQueryOptions.for_lock(LOCK)
    q.block_range = ValueRangeOption(5, 6)
    assert q.match_cell(make_cell(block_number=5), 0) is True
    assert q.match_cell(make_cell(block_number=6), 0) is False


@pytest.mark.parametrize(
    "maturity, expected",
    [(MaturityOption.MATURE, False), (MaturityOption.IMMATURE, True), (MaturityOption.BOTH, True)],
)
def test_match_maturity(maturity, expected):
    q = CellQueryOptions.for_lock(LOCK)
    q.maturity = maturity
    cellbase = make_cell(tx_index=0, block_number=100)
    assert q.match_cell(cellbase, 50) is expected


def test_abstract_bases_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Signer()
    with pytest.raises(TypeError):
        CellCollector()