"""Load and validate .eqcontract/config.yaml."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from eqcontract.contract import CHECK_NAMES, DEFAULT_REPEATS


# Default config values
DEFAULTS: dict[str, Any] = {
    "repeats": DEFAULT_REPEATS,
    "checks": [],
    "targets": [],
}

FACTORY_KEYS = ("equal", "unequal", "foreign")

# package.module:attribute[.attribute]
FACTORY_REF_RE = re.compile(r'^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$')


class ConfigError(Exception):
    """Raised when config is invalid or missing."""


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base recursively. Override wins on conflicts."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate_target(idx: int, target: Any) -> str:
    if not isinstance(target, dict):
        raise ConfigError(f"targets[{idx}] must be a mapping")

    name = target.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f"targets[{idx}] missing required 'name'")

    missing = [key for key in FACTORY_KEYS if key not in target]
    if missing:
        raise ConfigError(f"Target '{name}' missing required keys: {missing}")

    for key in FACTORY_KEYS:
        ref = target[key]
        if not isinstance(ref, str) or not FACTORY_REF_RE.match(ref):
            raise ConfigError(
                f"Target '{name}' {key!r} must be a 'module:attribute' "
                f"reference, got {ref!r}"
            )
    return name


def _validate(config: dict) -> None:
    """Validate required fields in config."""
    repeats = config.get("repeats")
    if isinstance(repeats, bool) or not isinstance(repeats, int) or repeats < 1:
        raise ConfigError(f"'repeats' must be a positive integer, got {repeats!r}")

    checks = config.get("checks")
    if not isinstance(checks, list):
        raise ConfigError("'checks' must be a list")
    unknown = [c for c in checks if c not in CHECK_NAMES]
    if unknown:
        raise ConfigError(
            f"'checks' has unknown names: {unknown}. Known: {', '.join(CHECK_NAMES)}"
        )

    targets = config.get("targets")
    if not isinstance(targets, list):
        raise ConfigError("'targets' must be a list")
    seen: set[str] = set()
    for idx, target in enumerate(targets):
        name = _validate_target(idx, target)
        if name in seen:
            raise ConfigError(f"Duplicate target name '{name}'")
        seen.add(name)


def config_path(project_root: Path) -> Path:
    return Path(project_root) / ".eqcontract" / "config.yaml"


def load_config(project_root: Path | None = None) -> dict:
    """Load config from .eqcontract/config.yaml under project_root.

    Falls back to cwd if project_root is None. Merges with DEFAULTS
    so callers always get a full config dict.
    """
    root = Path(project_root) if project_root else Path.cwd()
    path = config_path(root)

    if not path.exists():
        raise ConfigError(f"Config not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config is not valid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping, got {type(raw).__name__}")

    config = _deep_merge(DEFAULTS, raw)
    _validate(config)
    return config


def select_targets(config: dict, names: tuple[str, ...] | list[str] = ()) -> list[dict]:
    """Return the named targets in config order, or all targets if none named."""
    targets = config["targets"]
    if not names:
        return list(targets)

    known = {t["name"] for t in targets}
    unknown = [n for n in names if n not in known]
    if unknown:
        raise ConfigError(f"Unknown target(s): {unknown}. Known: {sorted(known)}")
    wanted = set(names)
    return [t for t in targets if t["name"] in wanted]
