from __future__ import annotations

import logging
from pathlib import Path

from ..context import InstallCtx
from ..errors import ConfigurationError, PreconditionError
from ..lib import zpool
from ..lib.partition import check_device, parse_size, plan_partitions

logger = logging.getLogger(__name__)


class PreflightStep:
    """Every check that can fail before anything is written to a device."""

    step_id = "10_preflight"

    def run(self, ctx: InstallCtx) -> None:
        opts = ctx.options

        if not opts.groups:
            raise ConfigurationError("No devices given", hint="add at least one device with -d")

        if not Path(opts.target_root).is_dir():
            raise PreconditionError(
                f"Mount point {opts.target_root} does not exist",
                hint=f"create it with 'mkdir -p {opts.target_root}' or pick another with -m",
            )

        ctx.max_version = zpool.module_max_version()
        ctx.pool_version = zpool.resolve_version(opts.version, ctx.max_version, compat=opts.compat)
        logger.info(
            "ZFS module version %s, pool version %s",
            ctx.max_version,
            "native" if ctx.pool_version is None else ctx.pool_version,
        )

        zpool.check_pool_name_available(opts.pool)

        swap_sectors = parse_size(opts.swap_size) if opts.swap_size else None
        pool_sectors = parse_size(opts.pool_size) if opts.pool_size else None

        check = getattr(ctx.os_installer, "check", None)
        if check is not None:
            check()

        for device in opts.devices:
            check_device(device)

        ctx.plans = [
            plan_partitions(device, swap_sectors=swap_sectors, pool_sectors=pool_sectors, align=opts.align)
            for device in opts.devices
        ]

        ctx.record("max_version", ctx.max_version)
        ctx.record("pool_version", ctx.pool_version)
        logger.info("Pre-flight checks passed for %s", ", ".join(opts.devices))
