"""Well-known values of the CKB chain: address prefixes, system script hashes, limits."""

PREFIX_MAINNET = "ckb"
PREFIX_TESTNET = "ckt"

NETWORK_MAINNET = "ckb"
NETWORK_TESTNET = "ckb_testnet"
NETWORK_STAGING = "ckb_staging"
NETWORK_DEV = "ckb_dev"

SECP_SIGNATURE_SIZE = 65

# Since relative mask
LOCK_TYPE_FLAG = 1 << 63
METRIC_TYPE_FLAG_MASK = 0x6000_0000_0000_0000
VALUE_MASK = 0x00FF_FFFF_FFFF_FFFF
REMAIN_FLAGS_BITS = 0x1F00_0000_0000_0000

# Special cells in genesis transactions: (transaction-index, output-index)
SIGHASH_OUTPUT_LOC = (0, 1)
MULTISIG_OUTPUT_LOC = (0, 4)
DAO_OUTPUT_LOC = (0, 2)
SIGHASH_GROUP_OUTPUT_LOC = (1, 0)
MULTISIG_GROUP_OUTPUT_LOC = (1, 1)

ONE_CKB = 100_000_000
MIN_SECP_CELL_CAPACITY = 61 * ONE_CKB

# Cellbase maturity of mainnet and testnet as a packed epoch:
# number 4 (bits 0..24), index 0 (bits 24..40), length 1 (bits 40..56).
CELLBASE_MATURITY = (1 << 40) | (0 << 24) | 4

# "TYPE_ID" in hex, right-aligned in 32 bytes
TYPE_ID_CODE_HASH = bytes.fromhex(
    "00000000000000000000000000000000000000000000000000545950455f4944"
)

SIGHASH_TYPE_HASH = bytes.fromhex(
    "9bd7e06f3ecf4be0f2fcd2188b23f1b9fcc88e5d4b65a8637b17723bbda3cce8"
)
MULTISIG_TYPE_HASH = bytes.fromhex(
    "5c5069eb0857efc65e1bca0c07df34c31663b3622fd3876c876320fc9634e2a8"
)
DAO_TYPE_HASH = bytes.fromhex(
    "82d76d1b75fe2fd9a27dfbaa65a039221a380d76c926f378d3f81cf3e7e13f2e"
)

# Anyone-can-pay script code hash on mainnet
ACP_TYPE_HASH_LINA = bytes.fromhex(
    "d369597ff47f29fbc0d47d2e3775370d1250b85140c670e4718af712983a2354"
)
# Anyone-can-pay script code hash on testnet
ACP_TYPE_HASH_AGGRON = bytes.fromhex(
    "3419a1c09eb2567f6552ee7a8ecffd64155cffe0f1796e6e61ec088d740c1356"
)

# Cheque withdraw since value
CHEQUE_CELL_SINCE = 0xA000000000000006