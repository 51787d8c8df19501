"""Cross-platform launcher for the GUI.

Usage:
  python run_gui.py [--debug] [--qt-diag] [-- <extra args>]

Equivalent to:
  python -m cuesheet_tool gui
  python -m cuesheet_tool qt-diag
"""

from __future__ import annotations

import os
import sys
from typing import List


def main(argv: List[str]) -> int:
    mode = "gui"
    lvl = "INFO"
    passthrough: List[str] = []

    it = iter(argv[1:])
    for a in it:
        al = a.lower()
        if al == "--qt-diag":
            mode = "qt-diag"
        elif al == "--debug":
            lvl = "DEBUG"
        elif al == "--":
            passthrough.extend(list(it))
            break
        else:
            passthrough.append(a)

    os.environ.setdefault("CUESHEET_LOG_TO_CONSOLE", "1")
    os.environ.setdefault("CUESHEET_LOG_LEVEL", lvl)
    os.environ.setdefault("PYTHONUNBUFFERED", "1")

    # Global options (e.g. --projects-dir) go before the subcommand.
    from cuesheet_tool.cli import main as cli_main

    return int(cli_main([*passthrough, mode]))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
