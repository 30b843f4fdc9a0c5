"""
Tests for buildfleet.orchestration.coverage
=============================================

What's Being Tested:
    - The combined report is built from the union of all modules' inputs
    - Modules without execution data contribute nothing and never fail
    - Directories are only included when they exist
    - Reports land at the configured root-relative paths
"""

import xml.etree.ElementTree as ET

import pytest

from buildfleet.core.config import BuildConfig, CoverageConfig
from buildfleet.core.exceptions import CoverageError
from buildfleet.integrations.coverage.base import CoverageReporter
from buildfleet.integrations.coverage.manifest import ManifestCoverageReporter
from buildfleet.orchestration.coverage import CoverageAggregator
from tests.helpers import populate_module


class RecordingReporter(CoverageReporter):
    name = "recording"

    def __init__(self) -> None:
        self.reports = []

    async def generate(self, report) -> None:
        self.reports.append(report)


class FailingReporter(CoverageReporter):
    name = "failing"

    async def generate(self, report) -> None:
        raise CoverageError("reporter exploded")


class TestCoverageAggregator:

    async def test_union_of_two_modules(self, populated, registry) -> None:
        reporter = RecordingReporter()
        report = await CoverageAggregator(populated, reporter).aggregate_coverage(registry)

        root = populated.root_dir
        assert report.execution_data == (
            root / "base" / "coverage-data" / "test.exec",
            root / "yaml" / "coverage-data" / "test.exec",
        )
        assert report.class_dirs == (root / "base" / "output" / "classes", root / "yaml" / "output" / "classes")
        assert report.source_dirs == (root / "base" / "sources", root / "yaml" / "sources")
        assert report.contributing_modules == ["base", "yaml"]
        assert reporter.reports == [report]

    async def test_report_paths(self, populated, registry) -> None:
        report = await CoverageAggregator(populated, RecordingReporter()).aggregate_coverage(registry)
        assert report.xml_report == populated.root_dir / "output" / "coverage" / "coverage.xml"
        assert report.html_report == populated.root_dir / "output" / "coverage" / "index.html"
        assert report.xml_report.parent.is_dir()

    async def test_module_without_data_contributes_empty_sets(self, config, registry) -> None:
        populate_module(config.root_dir, "base")
        populate_module(config.root_dir, "yaml", coverage=False)

        report = await CoverageAggregator(config, RecordingReporter()).aggregate_coverage(registry)

        assert report.contributing_modules == ["base"]
        assert len(report.execution_data) == 1
        yaml_unit = report.units[1]
        assert yaml_unit.module == "yaml"
        assert yaml_unit.execution_data == ()

    async def test_absent_module_directories_are_skipped(self, config, registry) -> None:
        report = await CoverageAggregator(config, RecordingReporter()).aggregate_coverage(registry)
        assert report.source_dirs == ()
        assert report.class_dirs == ()
        assert report.execution_data == ()
        assert report.contributing_modules == []

    async def test_custom_report_location(self, tmp_path, modules) -> None:
        config = BuildConfig(
            root_dir=tmp_path,
            modules=modules,
            coverage=CoverageConfig(report_dir="reports/jacoco", xml_name="jacoco.xml"),
        )
        report = await CoverageAggregator(config, RecordingReporter()).aggregate_coverage(config.modules)
        assert report.xml_report == tmp_path / "reports" / "jacoco" / "jacoco.xml"

    async def test_reporter_failure_propagates(self, populated, registry) -> None:
        with pytest.raises(CoverageError):
            await CoverageAggregator(populated, FailingReporter()).aggregate_coverage(registry)


class TestWithManifestReporter:

    async def test_two_module_scenario_writes_both_reports(self, populated, registry) -> None:
        reporter = ManifestCoverageReporter(base_dir=populated.root_dir)
        report = await CoverageAggregator(populated, reporter).aggregate_coverage(registry)

        root = ET.parse(report.xml_report).getroot()
        assert root.tag == "coverage-report"
        assert root.get("execution-files") == "2"
        assert [m.get("name") for m in root.findall("module")] == ["base", "yaml"]
        assert report.html_report.read_text().startswith("<!DOCTYPE html>")
