"""Pool assembly: module version gating, name checks and zpool(8) calls."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import ConfigurationError, OperationError, PreconditionError
from .command import run_cmd
from .partition import PartitionedDevice
from .topology import RedundancyGroup, RedundancyMode

logger = logging.getLogger(__name__)

# On-disk version reported by feature-flag capable modules. Passing it as
# -o version= is not meaningful, so it means "omit the option".
FEATURE_FLAGS_VERSION = 5000
MIN_MODULE_VERSION = 13

COMPAT_FEATURES = ("async_destroy", "empty_bpobj", "lz4_compress")

# ZFS pool names: start with letter, contain alphanumeric, underscore, dash, dot
_POOL_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_.\-]*$")
_RESERVED_PREFIXES = ("mirror", "raidz", "draid", "spare")

# "   pool: zroot" in `zpool import` output
_IMPORT_POOL_RE = re.compile(r"^\s*pool:\s*(?P<name>\S+)\s*$", re.MULTILINE)


@dataclass(frozen=True)
class VdevSpec:
    mode: RedundancyMode
    members: Tuple[str, ...]

    def argv(self) -> List[str]:
        paths = [f"/dev/{m}" for m in self.members]
        if self.mode == RedundancyMode.STRIPE:
            return paths
        return [self.mode.value, *paths]


@dataclass(frozen=True)
class PoolSpec:
    name: str
    vdevs: Tuple[VdevSpec, ...]
    altroot: str
    cachefile: str
    version: Optional[int] = None
    compat: bool = False
    fs_properties: Dict[str, str] = field(default_factory=dict)
    mountpoint: str = "none"

    def create_argv(self) -> List[str]:
        argv = ["zpool", "create", "-f", "-m", self.mountpoint]
        argv += ["-o", f"altroot={self.altroot}", "-o", f"cachefile={self.cachefile}"]
        if self.compat:
            argv.append("-d")
            for feature in COMPAT_FEATURES:
                argv += ["-o", f"feature@{feature}=enabled"]
        if self.version is not None:
            argv += ["-o", f"version={self.version}"]
        for key, value in self.fs_properties.items():
            argv += ["-O", f"{key}={value}"]
        argv.append(self.name)
        for vdev in self.vdevs:
            argv += vdev.argv()
        return argv


def validate_pool_name(name: str) -> str:
    if not name or not _POOL_NAME_RE.match(name):
        raise ConfigurationError(
            f"Invalid pool name: {name!r}. "
            "Must start with a letter and contain only [a-zA-Z0-9_.-]"
        )
    if name == "log" or name.startswith(_RESERVED_PREFIXES):
        raise ConfigurationError(f"Invalid pool name: {name!r} starts with a reserved word")
    return name


def parse_module_version(output: str) -> int:
    text = (output or "").strip()
    if not text.isdigit():
        raise PreconditionError(
            f"Unable to read ZFS pool version from sysctl output: {text!r}",
            hint="load the ZFS kernel module with 'kldload zfs'",
        )
    return int(text)


def module_max_version() -> int:
    """Return the highest pool version the loaded ZFS module supports."""

    r = run_cmd(["sysctl", "-n", "vfs.zfs.version.spa"], check=False)
    if r.returncode != 0:
        raise PreconditionError(
            "ZFS kernel support is not available",
            hint="load the ZFS kernel module with 'kldload zfs'",
        )
    version = parse_module_version(r.stdout)
    if version < MIN_MODULE_VERSION:
        raise PreconditionError(
            f"ZFS module version {version} is too old (need {MIN_MODULE_VERSION} or higher)"
        )
    return version


def resolve_version(requested: Optional[int], max_version: int, *, compat: bool) -> Optional[int]:
    """Return the value for -o version=, or None to omit the option."""

    if compat and max_version != FEATURE_FLAGS_VERSION:
        raise ConfigurationError(
            f"Compatibility mode requires a feature-flags ZFS module "
            f"(version {FEATURE_FLAGS_VERSION}), loaded module supports {max_version}"
        )

    version = max_version if requested is None else requested
    if version < 1:
        raise ConfigurationError(f"Invalid pool version: {version}")
    if version > max_version:
        raise ConfigurationError(
            f"Requested pool version {version} exceeds the module maximum {max_version}"
        )
    if version == FEATURE_FLAGS_VERSION:
        return None
    if compat:
        raise ConfigurationError("Compatibility mode cannot be combined with an explicit legacy version")
    return version


def uses_feature_flags(version: Optional[int], *, compat: bool) -> bool:
    return compat or version is None


def imported_pools() -> List[str]:
    r = run_cmd(["zpool", "list", "-H", "-o", "name"], check=False)
    if r.returncode != 0:
        raise OperationError("Unable to list imported pools", argv=r.argv, returncode=r.returncode, stderr=r.stderr)
    return [line.strip() for line in r.stdout.splitlines() if line.strip()]


def parse_importable_pools(output: str) -> List[str]:
    return _IMPORT_POOL_RE.findall(output or "")


def importable_pools() -> List[str]:
    # `zpool import` exits non-zero when there is nothing to import.
    r = run_cmd(["zpool", "import"], check=False)
    return parse_importable_pools(r.stdout)


def check_pool_name_available(name: str) -> None:
    validate_pool_name(name)
    if name in imported_pools():
        raise ConfigurationError(f"A pool named {name} is already imported")
    if name in importable_pools():
        raise ConfigurationError(
            f"A pool named {name} can be imported from attached devices",
            hint="choose another name with -p or destroy the old pool",
        )


def assemble_vdevs(
    groups: Sequence[RedundancyGroup], partitioned: Sequence[PartitionedDevice]
) -> Tuple[VdevSpec, ...]:
    """Map each group's devices to their pool partition labels."""

    labels = {p.device: p.pool_label for p in partitioned}
    vdevs: List[VdevSpec] = []
    for group in groups:
        missing = [d for d in group.devices if d not in labels]
        if missing:
            raise ConfigurationError(f"Devices not partitioned: {', '.join(missing)}")
        vdevs.append(VdevSpec(mode=group.mode, members=tuple(labels[d] for d in group.devices)))
    return tuple(vdevs)


def create_pool(spec: PoolSpec, *, dry_run: bool = False) -> None:
    logger.info("Creating pool %s with %d vdev(s)", spec.name, len(spec.vdevs))
    run_cmd(spec.create_argv(), dry_run=dry_run)


def export_pool(name: str, *, dry_run: bool = False) -> None:
    run_cmd(["zpool", "export", name], dry_run=dry_run)


def import_pool(name: str, *, altroot: str, cachefile: str, mount: bool = True, dry_run: bool = False) -> None:
    """Import name under altroot; mount=False leaves every dataset unmounted (-N)."""

    argv = ["zpool", "import"]
    if not mount:
        argv.append("-N")
    argv += ["-o", f"altroot={altroot}", "-o", f"cachefile={cachefile}", name]
    run_cmd(argv, dry_run=dry_run)


def set_pool_property(name: str, prop: str, value: str, *, dry_run: bool = False) -> None:
    run_cmd(["zpool", "set", f"{prop}={value}", name], dry_run=dry_run)


def get_pool_property(name: str, prop: str) -> str:
    r = run_cmd(["zpool", "get", "-H", "-o", "value", prop, name])
    return r.stdout.strip()
