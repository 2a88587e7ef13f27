"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "pageview_index.toml"
DEFAULT_DATA_DIR_NAME = ".pageview_index"
DEFAULT_SNAPSHOT_NAME = "index.snap"
DEFAULT_TOP_K = 10
MAX_TOP_K_CAP = 10_000


@dataclass(slots=True, frozen=True)
class IndexSettings:
    """Fully merged settings for the command line driver."""

    root: Path
    data_dir: Path
    snapshot_path: Path
    skip_invalid: bool
    default_top_k: int
    audit_enabled: bool

    @property
    def audit_log_path(self) -> Path:
        """Location of the JSONL audit log."""
        return self.data_dir / "audit.jsonl"

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "root": str(self.root),
            "data_dir": str(self.data_dir),
            "snapshot": {"path": str(self.snapshot_path)},
            "ingest": {"skip_invalid": self.skip_invalid},
            "query": {"default_top_k": self.default_top_k},
            "audit": {"enabled": self.audit_enabled},
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    snapshot_path: Path | None = None
    skip_invalid: bool | None = None
    default_top_k: int | None = None
    audit_enabled: bool | None = None


def default_settings(root: Path) -> IndexSettings:
    """Build default settings for a working root."""
    resolved_root = root.resolve()
    data_dir = resolved_root / DEFAULT_DATA_DIR_NAME
    return IndexSettings(
        root=resolved_root,
        data_dir=data_dir,
        snapshot_path=data_dir / DEFAULT_SNAPSHOT_NAME,
        skip_invalid=False,
        default_top_k=DEFAULT_TOP_K,
        audit_enabled=True,
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional pageview_index.toml from the working root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_positive_int_with_cap(value: object, name: str, default: int, cap: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def merge_config(
    base: IndexSettings, payload: dict[str, object], overrides: CliOverrides
) -> IndexSettings:
    """Merge defaults, config file, then CLI overrides."""
    snapshot_payload = _get_table(payload, "snapshot")
    ingest_payload = _get_table(payload, "ingest")
    query_payload = _get_table(payload, "query")
    audit_payload = _get_table(payload, "audit")

    snapshot_path = base.snapshot_path
    if "path" in snapshot_payload:
        raw_path = snapshot_payload["path"]
        if not isinstance(raw_path, str) or not raw_path:
            raise ValueError("Config field 'snapshot.path' must be a non-empty string.")
        snapshot_path = (base.root / raw_path).resolve()

    merged = IndexSettings(
        root=base.root,
        data_dir=base.data_dir,
        snapshot_path=snapshot_path,
        skip_invalid=_optional_bool(
            ingest_payload.get("skip_invalid"), "ingest.skip_invalid", base.skip_invalid
        ),
        default_top_k=_optional_positive_int_with_cap(
            query_payload.get("default_top_k"),
            "query.default_top_k",
            base.default_top_k,
            MAX_TOP_K_CAP,
        ),
        audit_enabled=_optional_bool(
            audit_payload.get("enabled"), "audit.enabled", base.audit_enabled
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(settings: IndexSettings, overrides: CliOverrides) -> IndexSettings:
    """Apply startup overrides at highest precedence."""
    default_top_k = _optional_positive_int_with_cap(
        overrides.default_top_k,
        "overrides.default_top_k",
        settings.default_top_k,
        MAX_TOP_K_CAP,
    )
    snapshot_path = settings.snapshot_path
    if overrides.snapshot_path is not None:
        snapshot_path = (settings.root / overrides.snapshot_path).resolve()
    return IndexSettings(
        root=settings.root,
        data_dir=settings.data_dir,
        snapshot_path=snapshot_path,
        skip_invalid=(
            overrides.skip_invalid if overrides.skip_invalid is not None else settings.skip_invalid
        ),
        default_top_k=default_top_k,
        audit_enabled=(
            overrides.audit_enabled
            if overrides.audit_enabled is not None
            else settings.audit_enabled
        ),
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> IndexSettings:
    """Load effective settings using merge order defaults -> file -> overrides."""
    resolved_root = root.resolve()
    base = default_settings(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
