"""Unit tests for the descriptor store SDK."""

from __future__ import annotations

import numpy as np
import pytest

from core.errors import DescStoreConfigError
from core.types import DescriptorIdentity, HPatchesStore, PhotoTourismStore, StoreOptions
from store.cache_gateway import cache_path_for
from store.descriptor_sdk import (
    DescStoreClient,
    HPatchesDescriptors,
    PhotoTourismDescriptors,
    open_store,
    resolve_dataset,
)
from tests.descriptor_fixtures import (
    build_config,
    write_hpatches_set,
    write_phototourism_single_file_set,
)


def test_open_store_with_no_load_returns_identity(tmp_path) -> None:
    """Name-only opens should not touch the filesystem."""
    config = build_config(tmp_path / "missing")

    result = open_store("sift", StoreOptions(dataset="pt", no_load=True), config)

    assert result == DescriptorIdentity(name="sift", dataset="phototourism")


@pytest.mark.parametrize(
    "options",
    [
        StoreOptions(dataset="imagenet"),
        StoreOptions(dtype="str"),
        StoreOptions(normalize=True),
    ],
)
def test_open_store_rejects_invalid_options_before_io(tmp_path, options) -> None:
    """Invalid options should raise config errors even for missing sets."""
    config = build_config(tmp_path / "missing")

    with pytest.raises(DescStoreConfigError):
        open_store("sift", options, config)


def test_resolve_dataset_accepts_aliases() -> None:
    """Short aliases should map to canonical dataset names."""
    assert resolve_dataset("hp") == "hpatches"
    assert resolve_dataset("pt") == "phototourism"


def test_open_store_loads_and_caches_hpatches(tmp_path) -> None:
    """Default options should load float32 data and write the cache."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})

    store = open_store("sift", StoreOptions(dataset="hp"), config)

    assert isinstance(store, HPatchesStore)
    assert store.data.dtype == np.float32
    assert cache_path_for(config.hpatches_desc_root / "sift").is_file()


def test_open_store_honors_dtype(tmp_path) -> None:
    """The requested dtype should apply to fresh and cached stores."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})
    options = StoreOptions(dtype="float64")

    fresh = open_store("sift", options, config)
    cached = open_store("sift", options, config)

    assert fresh.data.dtype == np.float64 and cached.data.dtype == np.float64


def test_open_store_applies_normalizer_without_caching_it(tmp_path) -> None:
    """Normalization should change the returned data but not the cache."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})
    options = StoreOptions(normalize=True, normalizer=lambda data: data * 2.0)

    normalized = open_store("sift", options, config)
    plain = open_store("sift", StoreOptions(), config)

    assert np.array_equal(normalized.data, plain.data * 2.0)
    assert not normalized.data.flags.writeable


def test_open_store_accepts_in_place_normalizer(tmp_path) -> None:
    """In-place normalizers should get writable data and keep the cache intact."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})
    plain = open_store("sift", StoreOptions(), config)

    def halve_in_place(data: np.ndarray) -> np.ndarray:
        data /= 2
        return data

    normalized = open_store(
        "sift", StoreOptions(normalize=True, normalizer=halve_in_place), config
    )
    cached = open_store("sift", StoreOptions(), config)

    assert np.array_equal(normalized.data, plain.data / 2)
    assert np.array_equal(cached.data, plain.data)


def test_client_descriptors_returns_dataset_handles(tmp_path) -> None:
    """The client should wrap stores in the matching dataset handle."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"a": 3})
    write_phototourism_single_file_set(
        config, "sift", {"liberty": 2, "notredame": 2, "yosemite": 2}
    )
    client = DescStoreClient(config)

    hpatches = client.descriptors("sift")
    phototourism = client.descriptors("sift", StoreOptions(dataset="phototourism"))

    assert isinstance(hpatches, HPatchesDescriptors)
    assert isinstance(phototourism, PhotoTourismDescriptors)
    assert isinstance(phototourism.store, PhotoTourismStore)
    hpatches.check_descriptors(["a"], "tough", [6], [3])
    hpatches.check_image_descriptors("a", "easy", 4)
    assert hpatches.get_image_descriptors("a", "easy", 4).shape == (4, 3)
    descriptors, sequence_ids = phototourism.get_descriptors("yosemite", [2])
    assert descriptors.shape == (4, 1) and sequence_ids.tolist() == [2]


def test_client_descriptors_rejects_no_load(tmp_path) -> None:
    """Handles require a loaded store."""
    client = DescStoreClient(build_config(tmp_path))

    with pytest.raises(DescStoreConfigError, match="no_load"):
        client.descriptors("sift", StoreOptions(no_load=True))


def test_client_with_data_root_derives_all_roots(tmp_path) -> None:
    """Changing the data root should move every descriptor root."""
    client = DescStoreClient(build_config(tmp_path / "one"))

    moved = client.with_data_root(str(tmp_path / "two"))

    assert moved.config.data_root == (tmp_path / "two").resolve()
    assert moved.config.hpatches_desc_root.parent.parent == moved.config.data_root
    assert moved.config.progress_interval == client.config.progress_interval
