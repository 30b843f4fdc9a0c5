"""
buildfleet.integrations.runner.recording - Recording Module Runner
===================================================================

A ModuleRunner that performs no work and records every call. It is the runner
to use when module outputs already exist on disk (the aggregator only needs
them to be there), and the one tests use to observe dispatch order.

Usage:
    >>> runner = RecordingModuleRunner()
    >>> runner.fail_on("yaml", LifecyclePhase.BUILD)
    >>> await driver.run_lifecycle(LifecyclePhase.BUILD)   # raises for "yaml"
    >>> runner.calls
    [('base', 'build'), ('yaml', 'build')]
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Optional

import structlog

from buildfleet.core.enums import LifecyclePhase
from buildfleet.core.models import ModuleDescriptor
from buildfleet.integrations.runner.base import ModuleRunner


logger = structlog.get_logger()

Hook = Callable[[ModuleDescriptor, LifecyclePhase, Path], Awaitable[None]]


class RecordingModuleRunner(ModuleRunner):
    """No-op runner with call tracking and failure simulation.

    Args:
        hook: Optional coroutine run for every call, after recording it.
            Tests use it to lay down module outputs during BUILD.
    """

    def __init__(self, hook: Optional[Hook] = None) -> None:
        self._hook = hook
        self._calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, LifecyclePhase], str] = {}
        self._logger = logger.bind(component="recording_module_runner")

    @property
    def calls(self) -> list[tuple[str, str]]:
        """(module name, phase value) pairs, in dispatch order."""
        return self._calls

    def fail_on(
        self,
        module: str,
        phase: LifecyclePhase,
        message: str = "Simulated module failure",
    ) -> None:
        """Make the next and every later ``phase`` call for ``module`` raise."""
        self._failures[(module, phase)] = message

    async def run(
        self,
        module: ModuleDescriptor,
        phase: LifecyclePhase,
        module_dir: Path,
        version: str,
    ) -> None:
        self._calls.append((module.name, phase.value))
        self._logger.debug("module_phase_recorded", module=module.name, phase=phase.value)

        message = self._failures.get((module.name, phase))
        if message is not None:
            raise RuntimeError(message)

        if self._hook is not None:
            await self._hook(module, phase, module_dir)
