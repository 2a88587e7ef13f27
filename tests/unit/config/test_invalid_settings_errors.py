from __future__ import annotations

from pathlib import Path

import pytest

from pageview_index.config import CliOverrides, load_effective_config


def _write_config(root: Path, *lines: str) -> None:
    (root / "pageview_index.toml").write_text("\n".join(lines), encoding="utf-8")


def test_invalid_section_type_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, 'query = "not-a-table"')

    with pytest.raises(ValueError, match="section 'query'"):
        load_effective_config(tmp_path)


def test_non_positive_top_k_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[query]", "default_top_k = 0")

    with pytest.raises(ValueError, match="query.default_top_k"):
        load_effective_config(tmp_path)


def test_top_k_above_cap_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[query]", "default_top_k = 10001")

    with pytest.raises(ValueError, match="<= 10000"):
        load_effective_config(tmp_path)


def test_bool_is_not_accepted_as_top_k(tmp_path: Path) -> None:
    _write_config(tmp_path, "[query]", "default_top_k = true")

    with pytest.raises(ValueError, match="positive integer"):
        load_effective_config(tmp_path)


def test_non_bool_skip_invalid_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[ingest]", 'skip_invalid = "yes"')

    with pytest.raises(ValueError, match="ingest.skip_invalid"):
        load_effective_config(tmp_path)


def test_empty_snapshot_path_raises_value_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "[snapshot]", 'path = ""')

    with pytest.raises(ValueError, match="snapshot.path"):
        load_effective_config(tmp_path)


def test_invalid_override_raises_value_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="overrides.default_top_k"):
        load_effective_config(tmp_path, CliOverrides(default_top_k=-4))
