"""Точка входа: imaginary-cities [options]"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from icities.app import PROJECT, VERSION, ImaginaryCitiesApp
from icities.infrastructure.observability import setup_logging
from icities.models.day_model import DailyFacts, DayDate
from icities.models.errors import ConfigError
from icities.services.config_service import DEFAULT_CONFIG_NAME
from icities.services.workspace_service import DEFAULT_LOCK_FILE

logger = logging.getLogger(__name__)


def _day(value: str) -> DayDate:
    try:
        return DayDate.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"--date={value} does not appear to be a date") from exc


def _positive(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value!r} must be > 0")
    return number


def _out_width(value: str) -> int:
    number = _positive(value)
    if number % 2:
        raise argparse.ArgumentTypeError(f"{value!r} must be even")
    return number


def make_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="imaginary-cities",
        description=f"{PROJECT}: daily mandala from a source photograph",
    )
    p.add_argument("--version", action="version", version=f"{PROJECT} v{VERSION}")
    p.add_argument("-c", "--config", default=DEFAULT_CONFIG_NAME, help="YAML configuration file")
    p.add_argument("--date", dest="dates", action="append", type=_day, default=[],
                   metavar="YYYYMMDD", help="date to render (repeatable, default: today UTC)")
    p.add_argument("--out-width", type=_out_width, default=None, help="override outWidth for every image")
    p.add_argument("--workers", type=_positive, default=1, help="parallel date renders")
    p.add_argument("--save-crop", action="store_true", help="also write the filtered crop as JPEG")
    p.add_argument("--wipe-image-dst", action="store_true", help="wipe the image destination directory")
    p.add_argument("--views", type=int, default=None, help="view count for every image and date")
    p.add_argument("--keyword", default=None, help="keyword for every image and date")
    p.add_argument("--lock-file", default=str(DEFAULT_LOCK_FILE), help="process lock file")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--log-format", default="text", choices=["text", "json"])
    return p


def _facts_override(parser: argparse.ArgumentParser, args: argparse.Namespace) -> Optional[DailyFacts]:
    if args.views is None and args.keyword is None:
        return None
    if args.views is None or args.keyword is None:
        parser.error("--views and --keyword must be given together")
    if args.views < 0:
        parser.error("--views must be >= 0")
    return DailyFacts(args.views, args.keyword)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_format)

    dates: List[DayDate] = args.dates
    try:
        app = ImaginaryCitiesApp(
            config_path=args.config,
            days=dates,
            out_width=args.out_width,
            workers=args.workers,
            save_crop=args.save_crop,
            wipe_destination=args.wipe_image_dst,
            facts_override=_facts_override(parser, args),
            lock_path=args.lock_file,
        )
    except (FileNotFoundError, ConfigError) as exc:
        logger.error("%s", exc)
        return 2
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
