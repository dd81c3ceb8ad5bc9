#!/usr/bin/env python3
"""
Write the JSON Schema of every interview kit model to a directory.

Usage:
  PYTHONPATH=. python3 scripts/export_schemas.py [target_dir]
"""

import sys
from pathlib import Path

from libs.core import schemas


def main(argv: list) -> None:
    target_dir = Path(argv[1]) if len(argv) > 1 else Path("schemas")
    schemas.export_schemas(target_dir)
    print(f"Wrote {len(schemas.SCHEMA_TARGETS)} schemas to {target_dir}")


if __name__ == "__main__":
    main(sys.argv)
