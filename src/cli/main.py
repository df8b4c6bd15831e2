"""Keystone CLI entry points.
This module exposes normalization and run inspection commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.normalize_command import add_normalize_command, run_normalize_command
from cli.run_spec_command import add_run_spec_command, run_run_spec_command
from core.config import KeystoneConfig
from core.errors import KeystoneError
from core.run_spec_execution import format_manifest_row
from store.sdk import KeystoneClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="keystone",
        description="Normalize vendor records into canonical entities",
    )
    parser.add_argument("--data-root", help="Override KEYSTONE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_normalize_command(subparsers)
    _add_runs_command(subparsers)
    _add_models_command(subparsers)
    add_run_spec_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Keystone CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.data_root)
        return _dispatch(parser, client, args)
    except KeystoneError as error:
        print(f"error={error}")
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    client: KeystoneClient,
    args: argparse.Namespace,
) -> int:
    if args.command == "normalize":
        return run_normalize_command(client, args)
    if args.command == "runs":
        return _run_runs_command(client, args)
    if args.command == "models":
        return _run_models_command(client)
    if args.command == "run-spec":
        return run_run_spec_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> KeystoneClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = KeystoneConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return KeystoneClient(config)


def _run_runs_command(client: KeystoneClient, args: argparse.Namespace) -> int:
    """Handle runs command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    for manifest in client.list_runs(args.model):
        print(format_manifest_row(manifest))
    return 0


def _run_models_command(client: KeystoneClient) -> int:
    for name, description in client.models().items():
        print(f"{name}\t{description}")
    return 0


def _add_runs_command(subparsers: Any) -> None:
    """Register runs subcommand."""
    parser = subparsers.add_parser("runs", help="List persisted runs of a model")
    parser.add_argument("--model", required=True, help="Entity model name")


def _add_models_command(subparsers: Any) -> None:
    """Register models subcommand."""
    subparsers.add_parser("models", help="List registered entity models")
