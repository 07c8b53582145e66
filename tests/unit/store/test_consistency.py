"""Unit tests for consistency checks against raw files."""

from __future__ import annotations

import numpy as np
import pytest

from core.errors import DescStoreVerificationError
from core.types import StoreOptions
from ingest.hpatches_loader import load_hpatches_store
from store.consistency import (
    check_hpatches_descriptors,
    check_hpatches_image_descriptors,
    raw_image_label,
)
from tests.descriptor_fixtures import build_config, write_hpatches_set, write_table


def _load(config, options: StoreOptions | None = None):
    return load_hpatches_store(
        "sift", config.hpatches_desc_root / "sift", options or StoreOptions(), config
    )


@pytest.mark.parametrize(
    ("noise_level", "image", "label"),
    [("easy", 1, "ref"), ("easy", 2, "e1"), ("hard", 6, "h5"), ("tough", 3, "t2")],
)
def test_raw_image_label_maps_positions_to_files(noise_level, image, label) -> None:
    """Position 1 is the reference image, later positions are noise levels."""
    assert raw_image_label(noise_level, image) == label


def test_check_descriptors_passes_for_fresh_store(tmp_path) -> None:
    """A freshly loaded store should match its raw files."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 4, "b": 6})
    store = _load(config)

    check_hpatches_descriptors(store, ["a", "b", "b"], "hard", [1, 3, 6], [4, 1, 6])
    for noise_level in ("easy", "hard", "tough"):
        for image in range(1, 7):
            check_hpatches_image_descriptors(store, "b", noise_level, image)


def test_check_descriptors_detects_changed_source(tmp_path) -> None:
    """Editing a raw file after loading should fail verification."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})
    store = _load(config)
    write_table(config.hpatches_desc_root / "sift" / "a" / "e2.csv", np.full((3, 4), 9.0))

    with pytest.raises(DescStoreVerificationError, match="image=e2"):
        check_hpatches_descriptors(store, ["a"], "easy", [3], [2])
    with pytest.raises(DescStoreVerificationError):
        check_hpatches_image_descriptors(store, "a", "easy", 3)


def test_check_image_descriptors_detects_count_change(tmp_path) -> None:
    """A source file with a different descriptor count should fail verification."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})
    store = _load(config)
    write_table(config.hpatches_desc_root / "sift" / "a" / "ref.csv", np.ones((2, 4)))

    with pytest.raises(DescStoreVerificationError, match="shape mismatch"):
        check_hpatches_image_descriptors(store, "a", "easy", 1)


def test_check_descriptors_compares_nan_entries(tmp_path) -> None:
    """NaN entries should compare equal when the store keeps them."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 2})
    table = np.array([[np.nan, 1.0, 2.0, 3.0], [4.0, np.nan, 6.0, 7.0]])
    write_table(config.hpatches_desc_root / "sift" / "a" / "h1.csv", table)
    kept = _load(config, StoreOptions(nan_value=None, use_cache=False))
    filled = _load(config, StoreOptions(nan_value=-1.0, use_cache=False))

    check_hpatches_image_descriptors(kept, "a", "hard", 2, nan_value=None)
    check_hpatches_image_descriptors(filled, "a", "hard", 2, nan_value=-1.0)
    with pytest.raises(DescStoreVerificationError):
        check_hpatches_image_descriptors(filled, "a", "hard", 2, nan_value=0.0)


def test_check_image_descriptors_accepts_sequence_without_descriptors(tmp_path) -> None:
    """A sequence of empty files should verify against its empty store block."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3, "b": 0})
    store = _load(config)

    assert store.per_sequence_count.tolist() == [3, 0]
    for noise_level in ("easy", "hard", "tough"):
        for image in range(1, 7):
            check_hpatches_image_descriptors(store, "b", noise_level, image)
