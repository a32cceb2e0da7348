"""Command line access to targeting and the capture queue.

Usage:
    python -m borghi.cli target --lat 44.0 --lng 9.05 --heading 270
    python -m borghi.cli list
    python -m borghi.cli drain
    python -m borghi.cli remove 1718900000000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from borghi.config import Settings
from borghi.contracts.common import Position
from borghi.runtime import Runtime, build_runtime
from borghi.services.geo import to_cardinal

logger = logging.getLogger(__name__)


async def _target(runtime: Runtime, args: argparse.Namespace) -> int:
    suggestion = runtime.capture.suggest(Position(lat=args.lat, lng=args.lng), args.heading)
    if suggestion is None:
        logger.info("No village nearby")
        return 1
    print(json.dumps(suggestion.model_dump(mode="json", by_alias=True), indent=2))
    if args.heading is not None:
        logger.info("Facing %s", to_cardinal(args.heading).value)
    return 0


async def _list(runtime: Runtime, args: argparse.Namespace) -> int:
    for record in await runtime.store.list_all():
        if args.status and record.status != args.status:
            continue
        print(f"{record.id}  {record.status:<7}  tries={record.tries}  {record.village_name}"
              + (f"  ({record.last_error})" if record.last_error else ""))
    return 0


async def _drain(runtime: Runtime, args: argparse.Namespace) -> int:
    report = await runtime.monitor.trigger("cli")
    if report is None:
        logger.warning("Drain skipped: sync conditions not met or drain failed")
        return 1
    print(json.dumps(report.model_dump(mode="json"), indent=2))
    return 0


async def _remove(runtime: Runtime, args: argparse.Namespace) -> int:
    if not await runtime.store.remove(args.capture_id):
        logger.error("Capture not found: %s", args.capture_id)
        return 1
    return 0


COMMANDS = {
    "target": _target,
    "list": _list,
    "drain": _drain,
    "remove": _remove,
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Borghi capture tools")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    target = sub.add_parser("target", help="Suggest the village in sight")
    target.add_argument("--lat", type=float, required=True)
    target.add_argument("--lng", type=float, required=True)
    target.add_argument("--heading", type=float, default=None, help="Degrees, 0 = north")

    listing = sub.add_parser("list", help="Show queued captures")
    listing.add_argument("--status", choices=["pending", "done", "failed"])

    sub.add_parser("drain", help="Upload pending captures now")

    remove = sub.add_parser("remove", help="Delete a queued capture")
    remove.add_argument("capture_id")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()
    runtime = build_runtime(Settings.from_env())
    return asyncio.run(COMMANDS[args.command](runtime, args))


if __name__ == "__main__":
    sys.exit(main())
