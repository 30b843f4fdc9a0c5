"""
buildfleet.orchestration.cleaner - Clean Orchestrator
=======================================================

Every module's CLEAN is dispatched first; only then is the root output tree
deleted. Deleting a tree that is already gone is a no-op.
"""

from __future__ import annotations

import shutil

import structlog

from buildfleet.core.config import BuildConfig
from buildfleet.core.enums import LifecyclePhase
from buildfleet.core.models import LifecycleResult
from buildfleet.orchestration.task_graph import TaskGraphDriver


logger = structlog.get_logger()


class CleanOrchestrator:
    """Tears down module outputs, then the root output directory."""

    def __init__(self, config: BuildConfig, driver: TaskGraphDriver) -> None:
        self._config = config
        self._driver = driver
        self._logger = logger.bind(component="clean_orchestrator")

    async def clean(self) -> tuple[LifecycleResult, bool]:
        """Run CLEAN for every module and remove the root output tree.

        Returns:
            The CLEAN lifecycle result and whether a tree was actually removed.

        Raises:
            ModulePhaseFailure: A module's clean failed; the root tree is
                left untouched.
        """
        result = await self._driver.run_lifecycle(LifecyclePhase.CLEAN)
        return result, self.remove_output()

    def remove_output(self) -> bool:
        output_dir = self._config.output_dir
        if not output_dir.exists():
            self._logger.info("output_already_absent", output_dir=str(output_dir))
            return False

        shutil.rmtree(output_dir)
        self._logger.info("output_removed", output_dir=str(output_dir))
        return True
