# ==================================================
# shard_index/cli.py
# ==================================================
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from .compression import READ_ERRORS
from .config import IndexConfig
from .console import SearchConsole
from .errors import ConfigurationError, StorageIOError
from .loader import load_file
from .service import open_index

logger = logging.getLogger(__name__)

LOG_FORMAT  = "%(asctime)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool = False):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format=LOG_FORMAT, datefmt=DATE_FORMAT)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shard-index",
                                description="Bulk-load a tab-delimited file and answer key lookups.")
    p.add_argument("load_file", help="key<TAB>value file (optionally .zst compressed)")
    p.add_argument("--in-memory", action="store_true", help="keep the whole index in RAM")
    p.add_argument("--index-dir", help="directory for shard files (destroys its segment files)")
    p.add_argument("--shards", type=int, help="number of shard files")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = IndexConfig.from_env().with_overrides(index_dir=args.index_dir,
                                                       shard_count=args.shards)
        index = open_index(config, in_memory=args.in_memory)
    except (ConfigurationError, StorageIOError) as exc:
        logger.error("Could not initialize index: %s", exc)
        return 1

    try:
        try:
            load_file(index, args.load_file)
        except READ_ERRORS:
            logger.exception("Exception while loading file %s", args.load_file)
        SearchConsole(index).run()
    except KeyboardInterrupt:
        pass
    finally:
        index.shutdown(config.shutdown_grace)
    return 0
