"""
buildfleet.orchestration.task_graph - Task Graph Driver
=========================================================

Fans a lifecycle phase out to every registered module, in registry order,
before any root-level continuation is allowed to run.

    run_lifecycle(BUILD)
        ├── base:  runner.run(BUILD)
        ├── yaml:  runner.run(BUILD) ──→ assembler.assemble(yaml)   (merged=True)
        └── ...
    ── all modules done ──→ caller runs Aggregate / Coverage / Publish

    run_lifecycle(CLEAN)
        ├── base:  runner.run(CLEAN)
        └── yaml:  runner.run(CLEAN)
    ── all modules dispatched ──→ caller deletes the root output tree

Dispatch is strictly sequential. The first module failure raises
ModulePhaseFailure and nothing after it runs, so a failed build never leads to
a partial aggregation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from buildfleet.core.config import BuildConfig
from buildfleet.core.enums import LifecyclePhase
from buildfleet.core.exceptions import AssemblyError, ModulePhaseFailure
from buildfleet.core.models import LifecycleResult, ModuleDescriptor
from buildfleet.core.registry import ModuleRegistry
from buildfleet.integrations.runner.base import ModuleRunner
from buildfleet.orchestration.assembler import FatArtifactAssembler


logger = structlog.get_logger()


class TaskGraphDriver:
    """Runs BUILD / CLEAN across the Module Registry.

    Attributes:
        _config: The run's immutable configuration.
        _registry: Modules to dispatch, in order.
        _runner: Carries out one phase for one module.
        _assembler: Builds merged archives after a module's BUILD. None
            disables fat artifacts for the run.

    Example:
        >>> driver = TaskGraphDriver(config, registry, RecordingModuleRunner())
        >>> result = await driver.run_lifecycle(LifecyclePhase.BUILD)
        >>> result.modules
        ('base', 'yaml')
    """

    def __init__(
        self,
        config: BuildConfig,
        registry: ModuleRegistry,
        runner: ModuleRunner,
        assembler: Optional[FatArtifactAssembler] = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._runner = runner
        self._assembler = assembler
        self._logger = logger.bind(component="task_graph_driver")

    @property
    def runner(self) -> ModuleRunner:
        return self._runner

    async def run_lifecycle(self, phase: LifecyclePhase) -> LifecycleResult:
        """Execute ``phase`` for every module.

        Returns:
            The modules that ran and any merged archives produced.

        Raises:
            ModulePhaseFailure: The first module whose phase failed.
        """
        started_at = datetime.now(timezone.utc)
        completed: list[str] = []
        merged: list[Path] = []

        self._logger.info(
            "lifecycle_starting",
            phase=phase.value,
            modules=[m.name for m in self._registry],
        )

        for module in self._registry:
            await self._run_module(module, phase)
            if phase == LifecyclePhase.BUILD and module.merged and self._assembler is not None:
                merged.append(self._assemble(self._assembler, module))
            completed.append(module.name)

        self._logger.info("lifecycle_completed", phase=phase.value, modules=completed)

        return LifecycleResult(
            phase=phase,
            modules=tuple(completed),
            merged_artifacts=tuple(merged),
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )

    async def _run_module(self, module: ModuleDescriptor, phase: LifecyclePhase) -> None:
        version = module.resolve_version(self._config.version)
        module_dir = self._config.module_dir(module)
        self._logger.debug("module_phase_starting", module=module.name, phase=phase.value)

        try:
            await self._runner.run(module, phase, module_dir, version)
        except ModulePhaseFailure as exc:
            self._logger.error("module_phase_failed", module=exc.module, error=exc.message, details=exc.details)
            raise
        except Exception as exc:
            failure = ModulePhaseFailure(
                message=f"{phase.value} of {module.name} failed: {exc}",
                module=module.name,
                phase=phase.value,
                details={"error_type": type(exc).__name__},
            )
            self._logger.error("module_phase_failed", module=module.name, error=str(exc), details=failure.details)
            raise failure from exc

    def _assemble(self, assembler: FatArtifactAssembler, module: ModuleDescriptor) -> Path:
        try:
            return assembler.assemble(module)
        except AssemblyError as exc:
            self._logger.error("module_assembly_failed", module=module.name, error=exc.message)
            raise ModulePhaseFailure(
                message=f"build of {module.name} failed: {exc.message}",
                module=module.name,
                phase=LifecyclePhase.BUILD.value,
                error_code="ASSEMBLY_FAILED",
                details={"cause": exc.to_dict()},
            ) from exc
