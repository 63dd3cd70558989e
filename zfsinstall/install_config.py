from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError
from .lib.env import DEFAULT_POOL_NAME, PATHS
from .lib.topology import RedundancyGroup, TopologyBuilder

# Keys accepted in a --config YAML file (besides "vdevs").
CONFIG_KEYS = {
    "source",
    "pool",
    "swap",
    "pool_size",
    "mountpoint",
    "version",
    "compat",
    "compression",
    "fletcher4",
    "align",
    "legacy",
}


@dataclass(frozen=True)
class InstallOptions:
    groups: Tuple[RedundancyGroup, ...]
    source: Optional[str] = None
    pool: str = DEFAULT_POOL_NAME
    swap_size: Optional[str] = None
    pool_size: Optional[str] = None
    target_root: str = PATHS.target_root
    version: Optional[int] = None
    compat: bool = False
    compression: bool = False
    fletcher4: bool = False
    align: bool = False
    legacy: bool = False
    dry_run: bool = False

    @property
    def devices(self) -> List[str]:
        return [d for g in self.groups for d in g.devices]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "source": self.source,
            "pool": self.pool,
            "swap_size": self.swap_size,
            "pool_size": self.pool_size,
            "target_root": self.target_root,
            "version": self.version,
            "compat": self.compat,
            "compression": self.compression,
            "fletcher4": self.fletcher4,
            "align": self.align,
            "legacy": self.legacy,
            "dry_run": self.dry_run,
        }


def load_install_config(path: str) -> Dict[str, Any]:
    """Load a YAML mapping of install defaults."""

    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML is required to read install config files") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a mapping/object")

    unknown = set(raw) - CONFIG_KEYS - {"vdevs"}
    if unknown:
        raise ConfigurationError(f"Unknown keys in {path}: {', '.join(sorted(unknown))}")
    return raw


def feed_config_vdevs(raw: Dict[str, Any], builder: TopologyBuilder) -> None:
    """Replay ``vdevs: [{mode: mirror, devices: [...]}, ...]`` into builder."""

    vdevs = raw.get("vdevs") or []
    if not isinstance(vdevs, list):
        raise ConfigurationError("config 'vdevs' must be a list")
    for entry in vdevs:
        if not isinstance(entry, dict) or not isinstance(entry.get("devices"), list):
            raise ConfigurationError(f"Invalid vdev entry in config: {entry!r}")
        for dev in entry["devices"]:
            builder.add_device(str(dev))
        mode = entry.get("mode")
        if mode and str(mode) != "stripe":
            builder.set_mode(str(mode))
