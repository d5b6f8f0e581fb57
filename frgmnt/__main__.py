"""Package entrypoint."""

from __future__ import annotations

from frgmnt.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
