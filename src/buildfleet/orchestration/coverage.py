"""
buildfleet.orchestration.coverage - Coverage Aggregator
=========================================================

Produces ONE coverage report for the whole project from the union of every
module's inputs:

    base/coverage-data/*.exec ─┐
    yaml/coverage-data/*.exec ─┼──→ execution data  ─┐
    base/output/classes  ──────┼──→ class dirs       ├──→ CoverageReporter
    yaml/output/classes  ──────┘                     │      ├── output/coverage/coverage.xml
    base/sources, yaml/sources ───→ source dirs     ─┘      └── output/coverage/index.html

Directories are included only when they exist. A module without execution
data contributes empty sets and never fails the run.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from buildfleet.core.config import BuildConfig
from buildfleet.core.exceptions import CoverageError
from buildfleet.core.models import CombinedReport, CoverageUnit, ModuleDescriptor
from buildfleet.integrations.coverage.base import CoverageReporter
from buildfleet.orchestration.layout import ModuleLayout


logger = structlog.get_logger()


class CoverageAggregator:
    """Builds the combined coverage report across modules."""

    def __init__(self, config: BuildConfig, reporter: CoverageReporter) -> None:
        self._config = config
        self._reporter = reporter
        self._logger = logger.bind(component="coverage_aggregator", reporter=reporter.name)

    @property
    def reporter(self) -> CoverageReporter:
        return self._reporter

    def collect_unit(self, module: ModuleDescriptor) -> CoverageUnit:
        layout = ModuleLayout(self._config, module)
        return CoverageUnit(
            module=module.name,
            source_dirs=tuple(d for d in (layout.sources_dir,) if d.is_dir()),
            class_dirs=tuple(d for d in (layout.classes_dir,) if d.is_dir()),
            execution_data=tuple(layout.execution_data()),
        )

    async def aggregate_coverage(self, modules: Iterable[ModuleDescriptor]) -> CombinedReport:
        """Collect every module's unit and hand the union to the reporter.

        Raises:
            CoverageError: The report directory cannot be created, or the
                reporter failed.
        """
        units = [self.collect_unit(module) for module in modules]
        for unit in units:
            if unit.is_empty:
                self._logger.info("coverage_data_absent", module=unit.module)

        report_dir = self._config.root_dir / self._config.coverage.report_dir
        try:
            report_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CoverageError(
                message=f"Cannot create coverage report directory: {exc}",
                details={"report_dir": str(report_dir)},
            ) from exc

        report = CombinedReport(
            xml_report=report_dir / self._config.coverage.xml_name,
            html_report=report_dir / self._config.coverage.html_name,
            units=tuple(units),
            source_dirs=tuple(d for u in units for d in u.source_dirs),
            class_dirs=tuple(d for u in units for d in u.class_dirs),
            execution_data=tuple(p for u in units for p in u.execution_data),
        )
        await self._reporter.generate(report)

        self._logger.info(
            "coverage_report_generated",
            xml=str(report.xml_report),
            html=str(report.html_report),
            execution_files=len(report.execution_data),
            contributing_modules=report.contributing_modules,
        )
        return report
