"""Unit tests for descriptor store CLI commands."""

from __future__ import annotations

import numpy as np
import pytest

from cli.main import main
from tests.descriptor_fixtures import (
    build_config,
    write_hpatches_set,
    write_phototourism_single_file_set,
    write_table,
)


def test_cli_info_prints_sequence_layout(tmp_path, capsys) -> None:
    """Info command should print counts and offsets per sequence."""
    write_hpatches_set(build_config(tmp_path), "sift", {"seq1": 10, "seq2": 7})

    exit_code = main(["--data-root", str(tmp_path), "info", "sift"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert "descriptor_count=17" in lines and "descriptor_dim=4" in lines
    assert "seq1\t10\t0" in lines and "seq2\t7\t10" in lines


def test_cli_get_prints_hpatches_descriptors(tmp_path, capsys) -> None:
    """Get command should print one line per requested HPatches descriptor."""
    write_hpatches_set(build_config(tmp_path), "sift", {"seq1": 10, "seq2": 7})

    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "get",
            "sift",
            "--sequence",
            "seq2",
            "--noise-level",
            "hard",
            "--image",
            "2",
            "--index",
            "3",
            "1",
        ]
    )
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert "1602 1602.25 1602.5 1602.75" in lines
    assert "1600 1600.25 1600.5 1600.75" in lines


def test_cli_get_prints_phototourism_descriptors(tmp_path, capsys) -> None:
    """Get command should resolve PhotoTourism sequences by name."""
    write_phototourism_single_file_set(
        build_config(tmp_path), "sift", {"liberty": 2, "notredame": 3, "yosemite": 1}
    )

    exit_code = main(
        [
            "--data-root",
            str(tmp_path),
            "get",
            "sift",
            "--dataset",
            "pt",
            "--sequence",
            "notredame",
            "--index",
            "3",
        ]
    )
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and "1002 1002.25 1002.5 1002.75" in lines


def test_cli_get_reports_out_of_range_index(tmp_path, capsys) -> None:
    """Access errors should print an error line and exit with 1."""
    write_hpatches_set(build_config(tmp_path), "sift", {"seq1": 2})

    exit_code = main(
        ["--data-root", str(tmp_path), "get", "sift", "--sequence", "seq1", "--index", "3"]
    )
    out = capsys.readouterr().out

    assert exit_code == 1 and "error=Descriptor index 3 out of range" in out


def test_cli_verify_checks_every_image(tmp_path, capsys) -> None:
    """Verify command should check all noise level images of each sequence."""
    write_hpatches_set(build_config(tmp_path), "sift", {"seq1": 3, "seq2": 2})

    exit_code = main(["--data-root", str(tmp_path), "verify", "sift"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert "checked_images=36" in lines and "sequences=2" in lines


def test_cli_verify_accepts_empty_sequence(tmp_path, capsys) -> None:
    """Verify command should pass when a sequence holds no descriptors."""
    write_hpatches_set(build_config(tmp_path), "sift", {"seq1": 3, "seq2": 0})

    exit_code = main(["--data-root", str(tmp_path), "verify", "sift"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and "checked_images=36" in lines


def test_cli_verify_fails_for_stale_cache(tmp_path, capsys) -> None:
    """Verify command should exit with 1 when raw files changed after caching."""
    config = build_config(tmp_path)
    write_hpatches_set(config, "sift", {"seq1": 3})
    assert main(["--data-root", str(tmp_path), "info", "sift"]) == 0
    write_table(config.hpatches_desc_root / "sift" / "seq1" / "t4.csv", np.zeros((3, 4)))

    exit_code = main(["--data-root", str(tmp_path), "verify", "sift", "--sequence", "seq1"])
    out = capsys.readouterr().out

    assert exit_code == 1 and "verification_error=" in out


def test_cli_rejects_unknown_command() -> None:
    """Unknown subcommands should exit through argparse."""
    with pytest.raises(SystemExit):
        main(["explode"])
