"""Fixed protocol parameters shared with the storage server."""

# SHA-1 everywhere, so 20 bytes = 160 bits.
HASH_BYTES = 20
# Level-0 leaf granularity.
BLOCK_SIZE = 4096
# Number of hashes folded into one hash of the next level.
LEVEL_GROUP = 256
