from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from .context import InstallCtx
from .errors import ConfigurationError, InstallError
from .install_config import CONFIG_KEYS, InstallOptions, feed_config_vdevs, load_install_config
from .lib.bootenv import BootEnvironmentManager, ZfsBootEnvironments
from .lib.distribution import OSInstaller, TarballInstaller
from .lib.env import DEFAULT_POOL_NAME, PATHS
from .lib.topology import TopologyBuilder
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, run_pipeline
from .state_store import new_state, save_state
from .steps import (
    ActivateBootEnvironmentStep,
    CreateBootEnvironmentStep,
    CreateDatasetsStep,
    CreatePoolStep,
    InstallOSStep,
    PartitionStep,
    PreflightStep,
    ReimportStep,
    SetBootfsStep,
    WriteConfigStep,
)

logger = logging.getLogger(__name__)


DEFAULT_STATE_PATH = PATHS.state_default


def build_steps():
    return [
        PreflightStep(),
        PartitionStep(),
        CreatePoolStep(),
        CreateDatasetsStep(),
        SetBootfsStep(),
        InstallOSStep(),
        WriteConfigStep(),
        ReimportStep(),
        CreateBootEnvironmentStep(),
        ActivateBootEnvironmentStep(),
    ]


def run(
    options: InstallOptions,
    *,
    state_path: str = DEFAULT_STATE_PATH,
    log_path: str = DEFAULT_LOG_PATH,
    os_installer: Optional[OSInstaller] = None,
    boot_envs: Optional[BootEnvironmentManager] = None,
) -> Dict[str, Any]:
    """Run the provisioning sequence, journaling progress to state_path."""

    actual_log_path = configure_logging(log_path=log_path)

    if os_installer is None:
        if not options.source:
            raise ConfigurationError("No distribution source given", hint="pass a URL or directory with -u")
        os_installer = TarballInstaller(options.source)

    ctx = InstallCtx(
        options=options,
        os_installer=os_installer,
        boot_envs=boot_envs or ZfsBootEnvironments(options.pool),
        state=new_state(options.to_dict()),
    )
    ctx.state["execution"]["log_path"] = actual_log_path

    try:
        result: PipelineResult = run_pipeline(ctx=ctx, steps=build_steps())
        ctx.state["execution"]["ran_steps"] = result.ran_steps
        logger.info("Installation of pool %s complete", options.pool)
        return ctx.state
    except Exception as e:
        logger.exception("Installer failed")
        step = ctx.state["execution"].get("current_step")
        if isinstance(e, InstallError):
            e.step = step
        ctx.state["execution"]["errors"].append({"step": step, "error": str(e)})
        raise
    finally:
        save_state(state_path, ctx.state)


class _AddDevice(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        namespace.topology.add_device(values)


class _SetRedundancy(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        namespace.topology.set_mode(values)


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stdout)
        print(f"{self.prog}: error: {message}")
        raise SystemExit(1)


def build_parser(topology: TopologyBuilder, defaults: Optional[Dict[str, Any]] = None) -> argparse.ArgumentParser:
    p = _Parser(
        prog="zfsinstall",
        description="Partition devices, create a ZFS pool and dataset layout, and install the OS onto it.",
        epilog="Devices and redundancy modes are read in order: '-d a -d b -r mirror -d c -d d -r mirror' "
        "creates a stripe of two mirrors.",
    )
    p.add_argument("-d", dest="devices", metavar="DEVICE", action=_AddDevice,
                   help="Add a device to the current group (repeatable)")
    p.add_argument("-r", dest="mode", metavar="MODE", action=_SetRedundancy,
                   help="Close the current group with mirror, raidz1 (raidz), raidz2 or raidz3")
    p.add_argument("-u", dest="source", default=None, help="Distribution URL or directory (base.txz, kernel.txz)")
    p.add_argument("-p", dest="pool", default=DEFAULT_POOL_NAME, help="Pool name (default: %(default)s)")
    p.add_argument("-s", dest="swap", default=None, help="Swap partition size, e.g. 2G (default: no swap)")
    p.add_argument("-z", dest="pool_size", default=None, help="Pool partition size (default: rest of disk)")
    p.add_argument("-m", dest="mountpoint", default=PATHS.target_root, help="Target mount point (default: %(default)s)")
    p.add_argument("-V", dest="version", default=None, help="Pool version (default: module maximum)")
    p.add_argument("-C", dest="compat", action="store_true", help="Compatibility mode (limited feature flags)")
    p.add_argument("-c", dest="compression", action="store_true", help="Enable compression on the whole pool")
    p.add_argument("-l", dest="fletcher4", action="store_true", help="Use fletcher4 checksums on the whole pool")
    p.add_argument("-A", dest="align", action="store_true", help="Align partitions to 4k")
    p.add_argument("-L", dest="legacy", action="store_true", help="Legacy mounts, no boot environments")
    p.add_argument("--config", default=None, help="YAML file with defaults for the options above")
    p.add_argument("--state", default=DEFAULT_STATE_PATH, help="Path to run journal (json|yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--dry-run", action="store_true", help="Run checks, only log destructive commands")
    p.set_defaults(topology=topology, **(defaults or {}))
    return p


def _config_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    # Config keys double as argparse dests.
    return {key: value for key, value in raw.items() if key in CONFIG_KEYS}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=None)
    known, _ = pre.parse_known_args(argv)

    topology = TopologyBuilder()
    defaults: Dict[str, Any] = {}
    if known.config:
        raw = load_install_config(known.config)
        feed_config_vdevs(raw, topology)
        defaults = _config_defaults(raw)

    return build_parser(topology, defaults).parse_args(argv)


def _pool_version(value: Any) -> Optional[int]:
    # -V arrives as a string, a --config value as whatever YAML made of it.
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ConfigurationError(f"Invalid pool version: {value!r}", hint="use a whole number such as 28 or 5000")


def options_from_args(args: argparse.Namespace) -> InstallOptions:
    groups = args.topology.finish()
    return InstallOptions(
        groups=tuple(groups),
        source=args.source,
        pool=str(args.pool),
        swap_size=str(args.swap) if args.swap else None,
        pool_size=str(args.pool_size) if args.pool_size else None,
        target_root=str(args.mountpoint),
        version=_pool_version(args.version),
        compat=bool(args.compat),
        compression=bool(args.compression),
        fletcher4=bool(args.fletcher4),
        align=bool(args.align),
        legacy=bool(args.legacy),
        dry_run=bool(args.dry_run),
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(argv)
        configure_logging(log_path=args.log)
        options = options_from_args(args)
        run(options, state_path=args.state, log_path=args.log)
    except InstallError as e:
        prefix = f"zfsinstall: {e.step}: " if e.step else "zfsinstall: "
        print(f"{prefix}{e.message}")
        if e.hint:
            print(f"zfsinstall: hint: {e.hint}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
