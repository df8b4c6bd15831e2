"""Normalize CLI command wiring.

This module registers the normalize subcommand and maps its arguments onto
SDK normalization options.
"""

from __future__ import annotations

import argparse
from typing import Any

from core.config import parse_as_of_date
from core.run_spec_execution import format_normalize_result
from core.types import NormalizeOptions
from entity_models.registry import model_names
from store.sdk import KeystoneClient


def add_normalize_command(subparsers: Any) -> None:
    """Register normalize subcommand."""
    parser = subparsers.add_parser(
        "normalize",
        help="Normalize a vendor source through an entity model",
    )
    parser.add_argument("source", help="Source file or directory (.jsonl, .csv, .parquet)")
    parser.add_argument("--model", required=True, choices=model_names(), help="Entity model")
    parser.add_argument("--xref", help="Cross-reference table file")
    parser.add_argument("--rates", help="Exchange-rate table file")
    parser.add_argument("--vendor", help="Vendor tag for rows without source_system")
    parser.add_argument(
        "--as-of-date",
        type=parse_as_of_date,
        help="Processing date (YYYY-MM-DD); overrides KEYSTONE_AS_OF_DATE",
    )
    parser.add_argument(
        "--incremental",
        action="store_true",
        help="Classify records as new/changed/unchanged against the latest run",
    )
    parser.add_argument(
        "--skip-invalid",
        action="store_true",
        help="Drop rows without an identifier instead of failing",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        help="Partition workers; overrides KEYSTONE_MAX_WORKERS",
    )


def run_normalize_command(client: KeystoneClient, args: argparse.Namespace) -> int:
    """Handle normalize command invocation."""
    options = NormalizeOptions(
        model_name=args.model,
        source_uri=args.source,
        xref_uri=args.xref,
        rates_uri=args.rates,
        vendor=args.vendor,
        as_of_date=args.as_of_date,
        incremental=args.incremental,
        skip_invalid=args.skip_invalid,
        max_workers=args.max_workers,
    )
    manifest = client.normalize(options)
    print(format_normalize_result(manifest))
    return 0
