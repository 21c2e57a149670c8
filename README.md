# ckbkit

A Python library of building blocks for working with the CKB blockchain.

## Modules

- `ckbkit.constants` holds well-known code hashes and genesis cell locations. It also holds
  capacity units such as `ONE_CKB` and `MIN_SECP_CELL_CAPACITY`.
- `ckbkit.packed` holds the chain data types: `Script`, `OutPoint`, `CellInput`, `CellDep`,
  `CellOutput`, `Transaction`, `Header`, `Block` and `ScriptId`, with the enums `HashType`
  and `DepType`. These types convert to and from the node's JSON form (`to_json`,
  `from_json`). `Script.calc_script_hash()` and `Transaction.hash()` compute hashes over
  the molecule serialization with `blake2b_256`.
- `ckbkit.rpc` provides `JsonRpcClient`, a blocking JSON-RPC 2.0 client over HTTP. It also
  provides `CkbRpcClient`, which covers the node's chain, net, pool, stats, miner, alert,
  integration-test and debug methods. Failures raise subclasses of `RpcError`:
  `RpcJsonError`, `RpcHttpError` and `RpcResponseError`.
- `ckbkit.indexer` provides `IndexerRpcClient` with `get_indexer_tip`, `get_cells`,
  `get_transactions` and `get_cells_capacity`. `SearchKey.from_query` builds a search key
  from `CellQueryOptions`.
- `ckbkit.traits` defines the interfaces a transaction builder relies on: `Signer`,
  `CellCollector`, `CellDepResolver`, `HeaderDepResolver` and
  `TransactionDependencyProvider`. It also defines their errors and `LiveCell`. For
  filtering cells it provides `CellQueryOptions` (with `match_cell`), `ValueRangeOption`
  and `is_mature`.
- `ckbkit.offchain` implements those interfaces over data held in memory, for example
  `OffchainCellCollector` and `OffchainTransactionDependencyProvider`.
- `ckbkit.dummy` implements them so that every call fails, except
  `DummyCellCollector.reset`, which does nothing.
- `ckbkit.default_impls` provides three node-backed implementations:
  - `DefaultCellDepResolver` builds the system script cell deps from the genesis block,
    and more cell deps can be registered with it.
  - `DefaultHeaderDepResolver` looks up headers through the node RPC.
  - `DefaultTransactionDependencyProvider` fetches through the node RPC and keeps results
    in LRU caches. A capacity of 0 turns caching off.

## Installing

```
pip install ckbkit
```

## Example

```python
from ckbkit.constants import SIGHASH_TYPE_HASH
from ckbkit.offchain import OffchainCellCollector
from ckbkit.packed import HashType, Script
from ckbkit.traits import CellQueryOptions

lock = Script(code_hash=SIGHASH_TYPE_HASH, hash_type=HashType.TYPE, args=bytes(20))
print(lock.calc_script_hash().hex())

query = CellQueryOptions.for_lock(lock)
collector = OffchainCellCollector()
cells, total_capacity = collector.collect_live_cells(query, True)
```

Talking to a node:

```python
from ckbkit.default_impls import DefaultCellDepResolver
from ckbkit.rpc import CkbRpcClient

client = CkbRpcClient("http://127.0.0.1:8114")
genesis = client.get_block_by_number(0)
resolver = DefaultCellDepResolver.from_genesis(genesis)
print(resolver.sighash_dep())
```

## What it does not do

This package has no command-line tool and no transaction builder. It has no addresses and
no subscription client. Signing is only an interface: there is no `Signer` implementation
that holds keys, and no script unlockers. The only `CellCollector` implementations are the
in-memory and dummy ones; no collector queries the indexer for you.

## Running the tests

```
pip install -e ".[test]"
pytest
```