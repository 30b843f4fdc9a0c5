"""
buildfleet.facade - BuildFleet Top-Level Facade
=================================================

The single entry point that wires every component from one BuildConfig and
exposes the stage pipelines as explicit method calls. Stages are composed in
code, never looked up by task name:

    run_build()      Build ──→ Aggregate
    run_aggregate()            Aggregate
    run_publish()    Build ──→ Aggregate ──→ Publish
    run_coverage()   Build ──→ Coverage
    run_clean()      Clean (modules) ──→ delete root output

    ┌──────────────────────────────────────────────────────┐
    │                 BuildFleet (Facade)                  │
    │                                                      │
    │   ModuleRegistry ── TaskGraphDriver ── ModuleRunner  │
    │                          │                           │
    │                  FatArtifactAssembler                │
    │                                                      │
    │   ArtifactAggregator   PublishPipeline ── Transport  │
    │   CoverageAggregator ── CoverageReporter             │
    │   CleanOrchestrator                                  │
    └──────────────────────────────────────────────────────┘

Every stage returns a RunSummary. A module BUILD/CLEAN failure stops the
pipeline and lands in ``summary.errors``; publish failures are per module
and live in ``summary.publish``.

Usage:
    >>> from buildfleet import BuildFleet
    >>> from buildfleet.core.config import load_config
    >>>
    >>> fleet = BuildFleet(load_config("buildfleet.yaml"))
    >>> summary = await fleet.run_publish()
    >>> summary.succeeded
    True
"""

from __future__ import annotations

from typing import Optional

import structlog

from buildfleet.core.config import BuildConfig
from buildfleet.core.enums import LifecyclePhase, RepositoryChannel
from buildfleet.core.exceptions import CoverageError, ModulePhaseFailure
from buildfleet.core.models import RunSummary
from buildfleet.core.registry import ModuleRegistry
from buildfleet.integrations.coverage.base import CoverageReporter
from buildfleet.integrations.coverage.factory import create_coverage_reporter
from buildfleet.integrations.repository.base import RepositoryTransport
from buildfleet.integrations.repository.factory import create_repository_transport
from buildfleet.integrations.runner.base import ModuleRunner
from buildfleet.integrations.runner.factory import create_module_runner
from buildfleet.orchestration.aggregator import ArtifactAggregator
from buildfleet.orchestration.assembler import FatArtifactAssembler
from buildfleet.orchestration.cleaner import CleanOrchestrator
from buildfleet.orchestration.coverage import CoverageAggregator
from buildfleet.orchestration.error_handler import ErrorHandler, RetryPolicy
from buildfleet.orchestration.publisher import PublishPipeline, select_channel
from buildfleet.orchestration.task_graph import TaskGraphDriver


logger = structlog.get_logger()


class BuildFleet:
    """Top-level facade over the multi-module build orchestrator.

    Attributes:
        _config: The run's immutable configuration.
        _registry: Modules declared in the configuration.
        _driver: BUILD / CLEAN fan-out.
        _aggregator: Copy + rename into the root output directory.
        _publisher: Channel selection and upload.
        _coverage: Combined coverage report.
        _cleaner: Module cleans followed by root output deletion.

    Example:
        >>> fleet = BuildFleet(config, runner=RecordingModuleRunner())
        >>> summary = await fleet.run_build()
        >>> [a.target_name for a in summary.aggregation.artifacts]
        ['JSky-1.0.0-SNAPSHOT.jar', 'JSky-1.0.0-SNAPSHOT-sources.jar', ...]
    """

    def __init__(
        self,
        config: Optional[BuildConfig] = None,
        *,
        runner: Optional[ModuleRunner] = None,
        transport: Optional[RepositoryTransport] = None,
        reporter: Optional[CoverageReporter] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        """Wire every component from ``config``.

        Args:
            config: Run configuration. Defaults to BuildConfig(), which reads
                BUILDFLEET_* environment variables.
            runner: Overrides the runner chosen from ``config.commands``.
            transport: Overrides the transport chosen from ``config.publish.layout``.
            reporter: Overrides the reporter chosen from ``config.coverage``.
            error_handler: Overrides the retry policy built from ``config.publish``.

        Raises:
            ConfigurationError: Invalid registry or component settings.
        """
        self._config = config or BuildConfig()
        self._registry = ModuleRegistry(self._config.modules)

        publish = self._config.publish
        self._error_handler = error_handler or ErrorHandler(
            RetryPolicy(
                max_retries=publish.max_retries,
                initial_delay=publish.retry_initial_delay,
                max_delay=publish.retry_max_delay,
            )
        )

        self._driver = TaskGraphDriver(
            self._config,
            self._registry,
            runner or create_module_runner(self._config.commands),
            FatArtifactAssembler(self._config),
        )
        self._aggregator = ArtifactAggregator(self._config)
        self._publisher = PublishPipeline(
            self._config,
            transport or create_repository_transport(publish.layout),
            self._error_handler,
        )
        self._coverage = CoverageAggregator(
            self._config,
            reporter or create_coverage_reporter(self._config.coverage, self._config.root_dir),
        )
        self._cleaner = CleanOrchestrator(self._config, self._driver)

        self._logger = logger.bind(component="buildfleet")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> BuildConfig:
        return self._config

    @property
    def registry(self) -> ModuleRegistry:
        return self._registry

    @property
    def driver(self) -> TaskGraphDriver:
        return self._driver

    @property
    def publisher(self) -> PublishPipeline:
        return self._publisher

    def channel(self, version: Optional[str] = None) -> RepositoryChannel:
        """Repository channel for ``version`` (default: the configured version)."""
        return select_channel(version or self._config.version, self._config.prerelease_marker)

    # =========================================================================
    # Stage Pipelines
    # =========================================================================

    async def run_build(self) -> RunSummary:
        """Build every module, then aggregate their artifacts."""
        try:
            lifecycle = await self._driver.run_lifecycle(LifecyclePhase.BUILD)
        except ModulePhaseFailure as exc:
            return self._failed(exc)

        aggregation = self._aggregator.aggregate(self._registry)
        return RunSummary(
            version=self._config.version,
            lifecycle=lifecycle,
            aggregation=aggregation,
            warnings=tuple(aggregation.warnings),
        )

    async def run_aggregate(self) -> RunSummary:
        """Aggregate artifacts already present in the module output directories."""
        aggregation = self._aggregator.aggregate(self._registry)
        return RunSummary(
            version=self._config.version,
            aggregation=aggregation,
            warnings=tuple(aggregation.warnings),
        )

    async def run_publish(self) -> RunSummary:
        """Build, aggregate and publish every module."""
        built = await self.run_build()
        if built.aggregation is None:
            return built

        self._logger.info(
            "publish_stage_starting",
            version=self._config.version,
            channel=self.channel().value,
        )
        publish = await self._publisher.publish_all(self._registry, built.aggregation)
        return built.model_copy(update={"publish": publish})

    async def run_coverage(self) -> RunSummary:
        """Build every module, then produce the combined coverage report."""
        try:
            lifecycle = await self._driver.run_lifecycle(LifecyclePhase.BUILD)
        except ModulePhaseFailure as exc:
            return self._failed(exc)

        try:
            coverage = await self._coverage.aggregate_coverage(self._registry)
        except CoverageError as exc:
            self._logger.error("coverage_failed", error_code=exc.error_code, error=exc.message)
            return RunSummary(
                version=self._config.version,
                lifecycle=lifecycle,
                errors=(exc.to_dict(),),
            )

        return RunSummary(
            version=self._config.version,
            lifecycle=lifecycle,
            coverage=coverage,
        )

    async def run_clean(self) -> RunSummary:
        """Clean every module, then delete the root output tree."""
        try:
            lifecycle, removed = await self._cleaner.clean()
        except ModulePhaseFailure as exc:
            return self._failed(exc)

        return RunSummary(
            version=self._config.version,
            lifecycle=lifecycle,
            removed_output=removed,
        )

    def _failed(self, exc: ModulePhaseFailure) -> RunSummary:
        self._logger.error(
            "pipeline_halted",
            module=exc.module,
            phase=exc.phase,
            error_code=exc.error_code,
        )
        return RunSummary(version=self._config.version, errors=(exc.to_dict(),))

    def __repr__(self) -> str:
        return (
            f"BuildFleet(version={self._config.version!r}, "
            f"modules={[m.name for m in self._registry]})"
        )
