"""Shared validation patterns for Bitcoin data tool parameters."""

# Transaction ids and block hashes are 32 bytes, hex encoded.
HASH_PATTERN = r"^[0-9a-fA-F]{64}$"

# Legacy/P2SH (base58, leading 1/2/3/m/n) and segwit (bech32/bech32m) addresses
# for mainnet, testnet and signet. Checksums are left to the backend.
BASE58_ADDRESS = r"[123mn][1-9A-HJ-NP-Za-km-z]{25,34}"
BECH32_ADDRESS = r"(?:bc|tb|BC|TB)1[02-9ac-hj-np-zAC-HJ-NP-Z]{6,87}"
ADDRESS_PATTERN = rf"^(?:{BASE58_ADDRESS}|{BECH32_ADDRESS})$"
