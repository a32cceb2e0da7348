"""CLI entry point for the village dataset import.

Usage:
    python -m borghi.etl.cli --raw-dir assets/raw --output borghi/data/villages.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from borghi.etl.village_import import import_directory
from borghi.persistence.village_registry import VillageRegistry

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Borghi village dataset import")
    parser.add_argument("--raw-dir", type=Path, required=True, help="Directory of borghi_<region>.json files")
    parser.add_argument("--output", type=Path, required=True, help="Lite dataset to write")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.raw_dir.is_dir():
        logger.error("Raw directory not found: %s", args.raw_dir)
        return 1

    villages = import_directory(args.raw_dir)
    if not villages:
        logger.error("No villages found in %s", args.raw_dir)
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(VillageRegistry(villages).to_json(), encoding="utf-8")
    logger.info("Wrote %d villages to %s", len(villages), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
