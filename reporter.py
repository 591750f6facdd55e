"""Console output for the CLI.

A Reporter is passed to every operation instead of printing to a global
stream, so tests can capture the output of one run.
"""

import sys
from typing import TextIO


class Reporter:
    """Writes progress lines in the ``[*] step`` / ``[!] warning`` style."""

    def __init__(self, stream: TextIO | None = None, err_stream: TextIO | None = None, debug: bool = False):
        self.stream = stream
        self.err_stream = err_stream
        self.debug_enabled = debug

    def _write(self, text: str, error: bool = False) -> None:
        if error:
            target = self.err_stream or sys.stderr
        else:
            target = self.stream or sys.stdout
        print(text, file=target, flush=True)

    def step(self, message: str) -> None:
        self._write(f"[*] {message}")

    def ok(self, message: str) -> None:
        self._write(f"[+] {message}")

    def warn(self, message: str) -> None:
        self._write(f"[!] {message}")

    def error(self, message: str) -> None:
        self._write(f"[!] ERROR: {message}", error=True)

    def info(self, message: str) -> None:
        self._write(f"    {message}")

    def line(self, text: str = "") -> None:
        self._write(text)

    def debug(self, message: str) -> None:
        if self.debug_enabled:
            self._write(f"    [DEBUG] {message}")

    def table(self, headers: list[str], rows: list[list[str]]) -> None:
        """Print a fixed-width text table."""
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))

        def fmt(cells: list[str]) -> str:
            return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

        self._write(f"    {fmt(headers)}")
        self._write(f"    {'─' * (sum(widths) + 3 * (len(widths) - 1))}")
        for row in rows:
            self._write(f"    {fmt(row)}")
