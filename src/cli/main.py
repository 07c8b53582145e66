"""Descriptor store CLI entry points.
This module exposes commands for loading, inspecting, and querying stores.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from typing import Any, Sequence

import numpy as np

from cli.verify_command import add_verify_command, run_verify_command
from core.config import DescStoreConfig
from core.constants import DATASET_ALIASES, DEFAULT_DTYPE, DEFAULT_NAN_VALUE, NOISE_LEVEL_SETS
from core.errors import DescStoreError
from core.types import HPatchesStore, PhotoTourismStore, StoreOptions
from store.descriptor_sdk import DescStoreClient, HPatchesDescriptors


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="descstore", description="Descriptor store CLI")
    parser.add_argument("--data-root", help="Override DESCSTORE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_info_command(subparsers)
    _add_get_command(subparsers)
    add_verify_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the descriptor store CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client = _build_client(args.data_root)
    try:
        if args.command == "info":
            return _run_info_command(client, args)
        if args.command == "get":
            return _run_get_command(client, args)
        if args.command == "verify":
            return run_verify_command(client, args)
    except DescStoreError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def build_store_options(args: argparse.Namespace) -> StoreOptions:
    """Build store options from shared command arguments."""
    return StoreOptions(
        dataset=args.dataset,
        dtype=args.dtype,
        use_cache=not args.no_cache,
        nan_value=args.nan_value,
    )


def add_store_arguments(parser: argparse.ArgumentParser) -> None:
    """Register arguments shared by commands that open a store."""
    parser.add_argument("name", help="Descriptor set name")
    parser.add_argument(
        "--dataset",
        default="hpatches",
        choices=tuple(DATASET_ALIASES),
        help="Dataset variant",
    )
    parser.add_argument("--dtype", default=DEFAULT_DTYPE, help="Descriptor storage type")
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Neither read nor write the descriptor cache file",
    )
    parser.add_argument(
        "--nan-value",
        type=float,
        default=DEFAULT_NAN_VALUE,
        help="Replacement for NaN entries; pass nan to keep them",
    )


def _build_client(data_root: str | None) -> DescStoreClient:
    """Build SDK client with optional data-root override.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    client = DescStoreClient(DescStoreConfig.from_env())
    if data_root:
        return client.with_data_root(data_root)
    return client


def _run_info_command(client: DescStoreClient, args: argparse.Namespace) -> int:
    """Handle info command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    store = client.open_store(args.name, build_store_options(args))
    if not isinstance(store, (HPatchesStore, PhotoTourismStore)):
        return 1
    print(f"name={store.name}")
    print(f"dataset={store.dataset}")
    print(f"descriptor_dim={store.descriptor_dim}")
    print(f"descriptor_count={store.descriptor_count}")
    for sequence, count, offset in zip(
        store.sequences, store.per_sequence_count.tolist(), store.offsets.tolist()
    ):
        print(f"{sequence}\t{count}\t{offset}")
    return 0


def _run_get_command(client: DescStoreClient, args: argparse.Namespace) -> int:
    """Handle get command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    handle = client.descriptors(args.name, build_store_options(args))
    if isinstance(handle, HPatchesDescriptors):
        descriptors = handle.get_descriptors(
            [args.sequence] * len(args.index),
            args.noise_level,
            [args.image] * len(args.index),
            args.index,
        )
    else:
        descriptors, _ = handle.get_descriptors(args.sequence, args.index)
    for column in np.asarray(descriptors).T:
        print(" ".join(format(float(value), "g") for value in column))
    return 0


def _add_info_command(subparsers: Any) -> None:
    """Register info subcommand."""
    parser = subparsers.add_parser("info", help="Load a descriptor set and print its layout")
    add_store_arguments(parser)


def _add_get_command(subparsers: Any) -> None:
    """Register get subcommand."""
    parser = subparsers.add_parser("get", help="Print descriptors for logical keys")
    add_store_arguments(parser)
    parser.add_argument("--sequence", required=True, help="Sequence name")
    parser.add_argument(
        "--noise-level",
        default="easy",
        choices=tuple(NOISE_LEVEL_SETS),
        help="HPatches noise level set",
    )
    parser.add_argument(
        "--image",
        type=int,
        default=1,
        help="HPatches one-based image position within the noise level set",
    )
    parser.add_argument(
        "--index",
        type=int,
        nargs="+",
        required=True,
        help="One-based descriptor indexes within the sequence",
    )
