from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .install_config import InstallOptions
from .lib.bootenv import BootEnvironmentManager
from .lib.datasets import DatasetNode, ROOT_DATASET, full_name
from .lib.distribution import OSInstaller
from .lib.partition import PartitionPlan, PartitionedDevice
from .lib.zpool import PoolSpec


@dataclass
class InstallCtx:
    """Everything the steps share: options, collaborators and results so far."""

    options: InstallOptions
    os_installer: OSInstaller
    boot_envs: BootEnvironmentManager
    state: Dict[str, Any] = field(default_factory=dict)

    max_version: Optional[int] = None
    pool_version: Optional[int] = None
    plans: List[PartitionPlan] = field(default_factory=list)
    partitioned: List[PartitionedDevice] = field(default_factory=list)
    pool_spec: Optional[PoolSpec] = None
    layout: Tuple[DatasetNode, ...] = ()

    @property
    def dry_run(self) -> bool:
        return self.options.dry_run

    @property
    def pool(self) -> str:
        return self.options.pool

    @property
    def target_root(self) -> str:
        return self.options.target_root

    @property
    def root_dataset(self) -> str:
        return full_name(self.pool, ROOT_DATASET)

    @property
    def swap_label(self) -> Optional[str]:
        # Only the first device's swap ends up in fstab.
        if not self.partitioned:
            return None
        return self.partitioned[0].swap_label

    def record(self, key: str, value: Any) -> None:
        self.state.setdefault("execution", {}).setdefault("decisions", {})[key] = value
