# Shared between the contract and off-chain readers; no algopy imports here.

# Longest fingerprint create_claim accepts, in bytes.
MAX_CLAIM_LENGTH = 6

# Box key = CLAIM_BOX_PREFIX + fingerprint
CLAIM_BOX_PREFIX = b"proofs"
