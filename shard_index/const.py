# ==================================================
# shard_index/const.py
# ==================================================
DEFAULT_INDEX_DIR    = "/tmp/index"
DEFAULT_SHARDS       = 1_000
DEFAULT_CACHE_SIZE   = 10_000
DEFAULT_BLOOM_BITS   = 1 << 27      # 16 MiB bit array
DEFAULT_BLOOM_HASHES = 3
DEFAULT_GRACE_SEC    = 1.0

SEGMENT_FMT   = "segment{:05d}"     # + .dat (records) / .idx (reserved)
DATA_SUFFIX   = ".dat"
INDEX_SUFFIX  = ".idx"

FIELD_SEP     = b"\t"               # key <TAB> value
RECORD_END    = b"\n"               # one record per line
ENCODING      = "utf-8"
ROUND_SALT    = 31                  # bloom round i mixes in byte (i*31) & 0xFF
