#!/usr/bin/env python3
"""tdsgrade CLI entrypoint (package module)."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from tdsgrade.io.export import tds_header, tds_row, write_csv
from tdsgrade.io.products import ProductConfig, default_product_configs, serialize_products
from tdsgrade.io.settings import TDSSettings
from tdsgrade.service.analysis import AnalysisService
from tdsgrade.tasting.codec import decode_intervals
from tdsgrade.tasting.model import TastingProfile, profile_from_dict
from tdsgrade.util.errors import ConfigError
from tdsgrade.util.exit_codes import ExitCode
from tdsgrade.util.logging import configure_logging, get_logger, log_exception

logger = get_logger(__name__)


class InputNotFound(Exception):
    pass


class InvalidInput(Exception):
    pass


def _read_json(path: str) -> Any:
    if not os.path.isfile(path):
        raise InputNotFound(path)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        raise InvalidInput(f"{path}: {exc}") from exc


def load_profile(path: str) -> TastingProfile:
    """Read a profile record; events may be inline or stored as per-attribute interval arrays."""
    payload = _read_json(path)
    if not isinstance(payload, dict):
        raise InvalidInput(f"{path}: expected a JSON object")
    try:
        if "events" not in payload and isinstance(payload.get("intervals"), dict):
            swallow = payload.get("swallowTime", payload.get("swallow_time"))
            events = decode_intervals(payload["intervals"], float(swallow) if swallow else None)
            payload = {**payload, "events": [ev.to_dict() for ev in events]}
        return profile_from_dict(payload)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{path}: {exc}") from exc


def _select_product(args: argparse.Namespace) -> ProductConfig:
    if args.product_file:
        payload = _read_json(args.product_file)
        return ProductConfig.from_dict(payload)
    products = default_product_configs()
    product = products.get(str(args.product).lower())
    if product is None:
        raise ConfigError(f"Unknown product '{args.product}'. Use --list-products to inspect options.")
    return product


def _settings(args: argparse.Namespace) -> TDSSettings:
    settings = TDSSettings.from_env()
    if getattr(args, "resolution", None):
        settings.resolution = float(args.resolution)
    if getattr(args, "sigma", None):
        if args.command == "aggregate":
            settings.sigma_multiple = float(args.sigma)
        else:
            settings.sigma_single = float(args.sigma)
    return settings


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _emit_products_json() -> None:
    _emit(serialize_products())


def _dispatch(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if args.product is None and not args.product_file:
        args.product = settings.product
    product = _select_product(args)
    with AnalysisService(product, settings) as service:
        if args.command == "analyze":
            profile = load_profile(args.profile)
            _emit({"profileId": profile.id, "product": product.id, **service.get_analysis(profile).to_dict()})
        elif args.command == "stream":
            profile = load_profile(args.profile)
            _emit({"profileId": profile.id, "points": service.get_stream(profile).to_records()})
        elif args.command == "aggregate":
            profiles = [load_profile(path) for path in args.profiles]
            _emit(service.get_aggregate(profiles).to_dict())
        elif args.command == "export":
            rows = []
            for path in args.profiles:
                profile = load_profile(path)
                rows.append(tds_row(profile, service.get_analysis(profile), product.attributes))
            write_csv(sys.stdout, tds_header(product.attributes), rows)


def run(args: argparse.Namespace) -> int:
    """Top-level CLI dispatcher; returns a documented exit code."""
    if getattr(args, "list_products", False):
        _emit_products_json()
        return ExitCode.SUCCESS
    try:
        _dispatch(args)
    except InputNotFound as exc:
        logger.error("Input file not found: %s", exc)
        return ExitCode.INPUT_NOT_FOUND
    except InvalidInput as exc:
        logger.error("Invalid tasting profile: %s", exc)
        return ExitCode.INVALID_INPUT
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return ExitCode.CONFIG_ERROR
    except Exception:
        log_exception(logger, "Unhandled error", error_type="cli")
        return ExitCode.GENERAL_ERROR
    return ExitCode.SUCCESS


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(description="Temporal Dominance of Sensations scoring and curves")
    p.add_argument("--list-products", dest="list_products", action="store_true", help="Print built-in products as JSON and exit")
    p.add_argument("--log-level", dest="log_level", type=str, help="DEBUG, INFO, WARNING or ERROR (default WARNING)")
    p.add_argument("--json-log", dest="json_log", type=str, help="Also write JSON-lines logs to this path")
    p.add_argument("--product", type=str, default=None, help="Built-in product id (default cacao_mass)")
    p.add_argument("--product-file", dest="product_file", type=str, help="JSON product definition to use instead")

    sub = p.add_subparsers(dest="command")

    a = sub.add_parser("analyze", help="Score one tasting profile")
    a.add_argument("profile", help="Profile JSON file")

    s = sub.add_parser("stream", help="Single-session share-of-sensation curve")
    s.add_argument("profile", help="Profile JSON file")
    s.add_argument("--resolution", type=float, help="Sample spacing in seconds (default 0.1)")
    s.add_argument("--sigma", type=float, help="Gaussian halo in seconds (default 2.0)")

    g = sub.add_parser("aggregate", help="Population curve across replications")
    g.add_argument("profiles", nargs="+", help="Profile JSON files, one per replication")
    g.add_argument("--sigma", type=float, help="Smoothing width in slices (default 3.0)")

    e = sub.add_parser("export", help="CSV header and TDS column block per profile")
    e.add_argument("profiles", nargs="+", help="Profile JSON files")

    args = p.parse_args(argv)

    if not args.list_products and not args.command:
        p.error("a command is required unless --list-products is used")
    for name in ("resolution", "sigma"):
        value = getattr(args, name, None)
        if value is not None and value <= 0:
            p.error(f"--{name} must be > 0")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.log_level, json_file=args.json_log)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
