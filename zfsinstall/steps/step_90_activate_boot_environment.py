from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.bootenv import DEFAULT_BE_NAME

logger = logging.getLogger(__name__)


class ActivateBootEnvironmentStep:
    step_id = "90_activate_boot_environment"

    def run(self, ctx: InstallCtx) -> None:
        if ctx.options.legacy:
            return
        ctx.boot_envs.activate(DEFAULT_BE_NAME, dry_run=ctx.dry_run)
        logger.info("Boot environment %s is active", DEFAULT_BE_NAME)
