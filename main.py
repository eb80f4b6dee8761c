"""Run `nlqctl` from a checkout: `python main.py deploy --build`.

Puts `src/` on the import path so `cli`, `core` and `adapters` resolve
without `pip install -e .`.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
