# ==================================================
# examples/build_load_file.py
# ==================================================
import argparse, random
from pathlib import Path

from shard_index.compression import compress, is_compressed


def write_load_file(path, count: int, keys: int = 100, seed: int = 0) -> int:
    """Write ``count`` random ``artist_N<TAB>id`` lines; ``*.zst`` paths get compressed."""
    rng = random.Random(seed)
    lines = [f"artist_{rng.randrange(keys)}\t{rng.randrange(10**6)}\n" for _ in range(count)]
    data = "".join(lines).encode("utf-8")
    Path(path).write_bytes(compress(data) if is_compressed(path) else data)
    return count


def main():
    p = argparse.ArgumentParser()
    p.add_argument("path", help="output load file (.zst to compress)")
    p.add_argument("count", type=int)
    p.add_argument("--keys", type=int, default=100)
    p.add_argument("--seed", type=int, default=0)
    args = p.parse_args()
    write_load_file(args.path, args.count, args.keys, args.seed)

if __name__ == "__main__":
    main()
