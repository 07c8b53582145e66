"""Verification command wiring for the descriptor store CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.constants import HPATCHES_DATASET
from core.errors import DescStoreVerificationError
from core.types import StoreOptions
from store.descriptor_sdk import DescStoreClient, HPatchesDescriptors


def add_verify_command(subparsers: Any) -> None:
    """Register verify subcommand."""
    parser = subparsers.add_parser(
        "verify",
        help="Cross-check an HPatches store against its raw descriptor files",
    )
    parser.add_argument("name", help="Descriptor set name")
    parser.add_argument(
        "--sequence",
        action="append",
        help="Sequence to check; repeat for several, all sequences when omitted",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Verify a freshly parsed store instead of the cached one",
    )


def run_verify_command(client: DescStoreClient, args: argparse.Namespace) -> int:
    """Check every sequence image of the selected sequences and print a summary."""
    handle = client.descriptors(
        args.name,
        StoreOptions(dataset=HPATCHES_DATASET, use_cache=not args.no_cache),
    )
    if not isinstance(handle, HPatchesDescriptors):
        return 1
    store = handle.store
    sequences = args.sequence or list(store.sequences)
    checked = 0
    try:
        for sequence in sequences:
            for noise_level, slots in store.noise_level_sets.items():
                for image in range(1, len(slots) + 1):
                    handle.check_image_descriptors(sequence, noise_level, image)
                    checked += 1
    except DescStoreVerificationError as error:
        print(f"verification_error={error}")
        return 1
    print(f"checked_images={checked}")
    print(f"sequences={len(sequences)}")
    return 0
