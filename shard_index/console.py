# ==================================================
# shard_index/console.py
# ==================================================
from __future__ import annotations

import sys
from typing import Optional, TextIO

PROMPT     = "search> "
NO_RESULTS = "No results found!"


class SearchConsole:
    """Line-oriented query loop: one query per input line until EOF."""

    def __init__(self, index, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.index  = index
        self.stdin  = stdin
        self.stdout = stdout

    def _prompt(self, out: TextIO):
        out.write(PROMPT)
        out.flush()

    def run(self) -> int:
        inp = self.stdin or sys.stdin
        out = self.stdout or sys.stdout
        queries = 0
        self._prompt(out)
        for line in inp:
            results = self.index.search(line.rstrip("\r\n"))
            queries += 1
            if not results:
                print(NO_RESULTS, file=out)
            for result in results:
                print(result, file=out)
            self._prompt(out)
        return queries
