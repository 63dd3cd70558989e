from .step_10_preflight import PreflightStep
from .step_20_partition import PartitionStep
from .step_30_create_pool import CreatePoolStep
from .step_40_create_datasets import CreateDatasetsStep
from .step_45_set_bootfs import SetBootfsStep
from .step_50_install_os import InstallOSStep
from .step_60_write_config import WriteConfigStep
from .step_70_reimport import ReimportStep
from .step_80_create_boot_environment import CreateBootEnvironmentStep
from .step_90_activate_boot_environment import ActivateBootEnvironmentStep

__all__ = [
    "PreflightStep",
    "PartitionStep",
    "CreatePoolStep",
    "CreateDatasetsStep",
    "SetBootfsStep",
    "InstallOSStep",
    "WriteConfigStep",
    "ReimportStep",
    "CreateBootEnvironmentStep",
    "ActivateBootEnvironmentStep",
]
