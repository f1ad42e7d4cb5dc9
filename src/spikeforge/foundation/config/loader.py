"""Spikeforge configuration loading.

Settings come from, highest priority first:

1. SPIKEFORGE_<SECTION>_<KEY> environment variables
2. the file passed to load_config()
3. .spikeforge/config.yaml in the working directory
4. ~/.spikeforge/config.yaml
5. the dataclass defaults in spikeforge.foundation.types.config

Only the first config file found is read. A file that cannot be read or
parsed is logged and the search moves on; values that parse but make no
sense raise CONFIG_INVALID.
"""

import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from spikeforge.foundation.errors import ErrorCode, SpikeforgeError
from spikeforge.foundation.types.config import (
    CacheConfig,
    CatalogConfig,
    DiscoveryConfig,
    SelectionConfig,
)
from spikeforge.foundation.utils import safe_yaml_loads

logger = logging.getLogger(__name__)

_ENV_PREFIX = "SPIKEFORGE_"

_SECTIONS: dict[str, type] = {
    "catalog": CatalogConfig,
    "discovery": DiscoveryConfig,
    "selection": SelectionConfig,
    "cache": CacheConfig,
}

# Settings an environment variable may not carry
_FILE_ONLY = frozenset({("discovery", "aliases")})

# (section, key, minimum)
_INT_BOUNDS: tuple[tuple[str, str, int], ...] = (
    ("catalog", "generated_scan_limit", 1),
    ("catalog", "list_limit", 1),
    ("discovery", "candidate_window", 1),
    ("selection", "batch_size", 1),
    ("selection", "top_n", 1),
    ("cache", "spec_cache_size", 0),
)


@dataclass(frozen=True, slots=True)
class SpikeforgeConfig:
    """Everything configurable, one frozen section per concern."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    debug: bool = False


_config: SpikeforgeConfig | None = None
_config_lock = threading.Lock()


def _get_dataclass_defaults() -> dict[str, Any]:
    """Plain-dict form of SpikeforgeConfig(), ready to be overlaid."""
    return asdict(SpikeforgeConfig())


def _overlay(base: dict[str, Any], file_data: dict[str, Any]) -> None:
    """Overlay a config file onto ``base`` one section at a time.

    Keys inside a section replace the default outright, so an ``aliases``
    mapping in the file is the whole alias table rather than an addition.
    """
    for key, value in file_data.items():
        if key in _SECTIONS and isinstance(value, dict):
            base.setdefault(key, {}).update(value)
        else:
            base[key] = value


def _coerce_env_value(key: str, value: str) -> Any:
    """Read an environment string the way the YAML scalar would load."""
    if key == "spec_dirs":
        return [part for part in value.split(os.pathsep) if part]
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for parse in (int, float):
        try:
            return parse(value)
        except ValueError:
            continue
    return value


def _env_key(name: str) -> tuple[str, str] | None:
    """SPIKEFORGE_CATALOG_LIST_LIMIT -> ("catalog", "list_limit")."""
    rest = name[len(_ENV_PREFIX):].lower()
    for section, cls in _SECTIONS.items():
        if rest.startswith(f"{section}_"):
            key = rest[len(section) + 1:]
            if key in cls.__dataclass_fields__ and (section, key) not in _FILE_ONLY:
                return section, key
            return None
    return None


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply SPIKEFORGE_<SECTION>_<KEY> variables; unknown names are ignored.

    Examples:
        SPIKEFORGE_CATALOG_LIST_LIMIT=50
        SPIKEFORGE_DISCOVERY_ALIAS_BOOST_ENABLED=false
        SPIKEFORGE_CATALOG_SPEC_DIRS=./spikes:../shared  (os.pathsep separated)
    """
    env = os.environ if environ is None else environ
    for name, value in env.items():
        if not name.startswith(_ENV_PREFIX):
            continue
        target = _env_key(name)
        if target is None:
            continue
        section, key = target
        config_dict.setdefault(section, {})[key] = _coerce_env_value(key, value)
        logger.debug("Config %s.%s set from %s", section, key, name)
    return config_dict


def _invalid(key: str, detail: str, cause: Exception | None = None) -> SpikeforgeError:
    return SpikeforgeError(ErrorCode.CONFIG_INVALID, {"key": key, "detail": detail}, cause=cause)


def _validate(config_dict: dict) -> None:
    for section, key, minimum in _INT_BOUNDS:
        value = config_dict.get(section, {}).get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise _invalid(f"{section}.{key}", f"expected an integer >= {minimum}, got {value!r}")


def _build(data: dict[str, Any]) -> SpikeforgeConfig:
    sections = {name: dict(data.get(name) or {}) for name in _SECTIONS}

    catalog = sections["catalog"]
    catalog["spec_dirs"] = tuple(str(d) for d in catalog.get("spec_dirs") or ())
    discovery = sections["discovery"]
    discovery["aliases"] = {
        str(alias).lower(): str(target) for alias, target in (discovery.get("aliases") or {}).items()
    }

    try:
        discovery["alias_boost"] = float(discovery.get("alias_boost", 0.0))
    except (TypeError, ValueError) as e:
        raise _invalid("discovery.alias_boost", str(e), e) from e

    built: dict[str, Any] = {}
    for name, cls in _SECTIONS.items():
        try:
            built[name] = cls(**sections[name])
        except TypeError as e:
            raise _invalid(name, str(e), e) from e

    return SpikeforgeConfig(**built, debug=bool(data.get("debug", False)))


def _candidate_files(path: str | Path | None) -> list[Path]:
    candidates = [Path(path)] if path else []
    candidates.append(Path(".spikeforge") / "config.yaml")
    candidates.append(Path.home() / ".spikeforge" / "config.yaml")
    return candidates


def _read_file(path: Path) -> dict[str, Any] | None:
    """Parsed mapping from a config file, or None to keep searching."""
    try:
        data = safe_yaml_loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Skipping unreadable config %s: %s", path, e)
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Skipping config %s: top level is %s, not a mapping", path, type(data).__name__)
        return None
    return data


def load_config(path: str | Path | None = None) -> SpikeforgeConfig:
    """Load configuration and make it the process-wide config.

    Args:
        path: Config file to try before the standard locations.

    Raises:
        SpikeforgeError: CONFIG_INVALID for unknown keys or out-of-range values.
    """
    global _config

    merged = _get_dataclass_defaults()
    for candidate in _candidate_files(path):
        if not candidate.is_file():
            continue
        file_data = _read_file(candidate)
        if file_data is not None:
            _overlay(merged, file_data)
            logger.debug("Loaded config from %s", candidate)
            break

    _apply_env_overrides(merged)
    _validate(merged)

    _config = _build(merged)
    return _config


def get_config() -> SpikeforgeConfig:
    """The current config, loading it on first use."""
    global _config

    if _config is not None:
        return _config
    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Forget the loaded config so the next get_config() reloads it."""
    global _config
    with _config_lock:
        _config = None
