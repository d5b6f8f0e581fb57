"""CLI entrypoint and logging setup."""

from __future__ import annotations

import argparse
import json
import logging
import os
import random
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable

import boto3

from frgmnt.config import Config, ConfigError, load_config, validate_config
from frgmnt.errors import FragmentError
from frgmnt.fragmenter import Fragment, Fragmenter
from frgmnt.metrics import format_throughput, transfer_stats
from frgmnt.reassembler import Reassembler
from frgmnt.s3 import is_s3_uri, parse_s3_uri


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="frgmnt")
    subparsers = parser.add_subparsers(dest="command")

    info = subparsers.add_parser("info", help="show fragment count and hash")
    _add_common_args(info)
    info.add_argument("source", help="file path or s3://bucket/key")

    copy = subparsers.add_parser(
        "copy", help="fragment a source and reassemble it into a file"
    )
    _add_common_args(copy)
    copy.add_argument("source", help="file path or s3://bucket/key")
    copy.add_argument("target", help="file to reassemble into")
    copy.add_argument(
        "--shuffle",
        action="store_const",
        const=True,
        help="deliver fragments in random order (holds all fragments in memory)",
    )
    copy.add_argument(
        "--duplicates",
        type=int,
        help="number of extra random re-deliveries",
    )
    copy.add_argument("--seed", type=int, help="seed for shuffle/duplicates")

    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        parser.print_help()
        raise SystemExit(0)
    args = parser.parse_args(list(argv))
    if args.command is None:
        parser.error("command required")
    return args


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="path to config.toml")
    parser.add_argument("--log-level", help="override log level")
    parser.add_argument(
        "--fragment-size", type=int, help="override fragment size in bytes"
    )


def setup_logging(level: str) -> None:
    numeric = _parse_level(level)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main(argv: Iterable[str] | None = None) -> int:
    try:
        args = parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    try:
        config = _load_and_override_config(args)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2

    setup_logging(config.global_cfg.log_level)
    logging.getLogger(__name__).info(
        "event=command_start command=%s source=%s fragment_size=%d",
        args.command,
        args.source,
        config.fragment.size_bytes,
    )
    if args.command == "info":
        return run_info(args, config)
    if args.command == "copy":
        return run_copy(args, config)
    return 2


def run_info(args: argparse.Namespace, config: Config) -> int:
    logger = logging.getLogger(__name__)
    try:
        with _open_fragmenter(args.source, config) as fragmenter:
            payload = {
                "source": args.source,
                "size": fragmenter.size,
                "fragment_size": fragmenter.fragment_size,
                "total": fragmenter.total,
                "sha256": fragmenter.hash(),
            }
    except ValueError as exc:
        logger.error("event=info_invalid_source error=%s", exc)
        return 2
    except FragmentError as exc:
        logger.error("event=info_failed source=%s error=%s", args.source, exc)
        return 1
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


def run_copy(args: argparse.Namespace, config: Config) -> int:
    logger = logging.getLogger(__name__)
    if _same_file(args.source, args.target):
        logger.error(
            "event=copy_same_file source=%s target=%s", args.source, args.target
        )
        return 2
    rng = random.Random(config.copy.seed)
    duplicates = 0
    started = time.monotonic()
    try:
        with _open_fragmenter(args.source, config) as fragmenter:
            with Reassembler.to_file(args.target, fragmenter.total) as reassembler:
                if config.copy.shuffle or config.copy.duplicates:
                    deliveries = plan_deliveries(
                        list(fragmenter),
                        shuffle=config.copy.shuffle,
                        duplicates=config.copy.duplicates,
                        rng=rng,
                    )
                    duplicates = len(deliveries) - fragmenter.total
                    for fragment in deliveries:
                        reassembler.add(fragment.index, fragment.payload)
                else:
                    fragmenter.each(
                        lambda index, _total, payload: reassembler.add(
                            index, payload
                        )
                    )
                actual = reassembler.hash()
            expected = fragmenter.hash()
            size = fragmenter.size
            total = fragmenter.total
    except ValueError as exc:
        logger.error("event=copy_invalid_source error=%s", exc)
        return 2
    except (FragmentError, OSError) as exc:
        logger.error(
            "event=copy_failed source=%s target=%s error=%s",
            args.source,
            args.target,
            exc,
        )
        return 1

    if actual != expected:
        logger.error(
            "event=copy_hash_mismatch expected=%s actual=%s", expected, actual
        )
        return 1
    stats = transfer_stats(
        fragments=total,
        duplicates=duplicates,
        total_bytes=size,
        elapsed_seconds=time.monotonic() - started,
    )
    logger.info(
        "event=copy_complete target=%s fragments=%d duplicates=%d bytes=%d "
        "throughput=%s sha256=%s",
        args.target,
        stats.fragments,
        stats.duplicates,
        stats.total_bytes,
        format_throughput(stats.throughput_bytes_per_sec),
        actual,
    )
    return 0


def plan_deliveries(
    fragments: list[Fragment],
    *,
    shuffle: bool,
    duplicates: int,
    rng: random.Random,
) -> list[Fragment]:
    """Order fragments the way an unreliable channel might deliver them."""
    deliveries = list(fragments)
    if shuffle:
        rng.shuffle(deliveries)
    if not fragments:
        return deliveries
    for _ in range(duplicates):
        position = rng.randrange(len(deliveries) + 1)
        deliveries.insert(position, rng.choice(fragments))
    return deliveries


def _same_file(source: str, target: str) -> bool:
    if is_s3_uri(source):
        return False
    try:
        return os.path.samefile(
            Path(source).expanduser(), Path(target).expanduser()
        )
    except OSError:
        return False


def _open_fragmenter(source: str, config: Config) -> Fragmenter:
    fragment_size = config.fragment.size_bytes
    if is_s3_uri(source):
        bucket, key = parse_s3_uri(source)
        client = boto3.client("s3", region_name=config.s3.region or None)
        return Fragmenter.from_s3(client, bucket, key, fragment_size)
    return Fragmenter.from_file(source, fragment_size)


def _load_and_override_config(args: argparse.Namespace) -> Config:
    if args.config:
        config = load_config(Path(args.config).expanduser())
    else:
        config = Config.default()
    if args.log_level:
        config = replace(
            config, global_cfg=replace(config.global_cfg, log_level=args.log_level)
        )
    if args.fragment_size is not None:
        config = replace(
            config,
            fragment=replace(config.fragment, size_bytes=args.fragment_size),
        )
    copy_overrides = {
        name: getattr(args, name)
        for name in ("shuffle", "duplicates", "seed")
        if getattr(args, name, None) is not None
    }
    if copy_overrides:
        config = replace(config, copy=replace(config.copy, **copy_overrides))
    validate_config(config)
    return config


def _parse_level(value: str) -> int:
    normalized = value.lower()
    mapping = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }
    if normalized not in mapping:
        raise ConfigError(f"invalid log level: {value}")
    return mapping[normalized]
