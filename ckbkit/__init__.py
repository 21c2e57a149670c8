"""Chain types, JSON-RPC and indexer clients, and transaction-building interfaces for CKB."""

__version__ = "0.1.0"
__all__ = [
    "constants",
    "packed",
    "traits",
    "rpc",
    "indexer",
    "offchain",
    "dummy",
    "default_impls",
]