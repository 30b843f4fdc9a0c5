"""
Tests for buildfleet.facade - BuildFleet Top-Level Facade
===========================================================

What's Being Tested:
    - Component wiring from a BuildConfig (runner, transport, reporter)
    - Stage pipelines: build, aggregate, publish, coverage, clean
    - A module failure halts the pipeline and lands in summary.errors
    - Channel selection through the facade

Module BUILDs are simulated with a RecordingModuleRunner hook that lays down
the module outputs; the repository is mocked with respx.
"""

import pytest
import respx

from buildfleet.core import BuildConfig, ModuleDescriptor
from buildfleet.core.config import CommandConfig, PublishConfig
from buildfleet.core.enums import LifecyclePhase, PublishStatus, RepositoryChannel
from buildfleet.core.exceptions import ConfigurationError
from buildfleet.facade import BuildFleet
from buildfleet.integrations.coverage.manifest import ManifestCoverageReporter
from buildfleet.integrations.repository.bundle import BundleUploadTransport
from buildfleet.integrations.repository.maven import MavenLayoutTransport
from buildfleet.integrations.runner.command import CommandModuleRunner
from buildfleet.integrations.runner.recording import RecordingModuleRunner
from tests.helpers import SNAPSHOT_URL, VERSION, populate_module, write_jar


# =============================================================================
# Helpers
# =============================================================================
def _building_runner(config: BuildConfig) -> RecordingModuleRunner:
    async def hook(module, phase, module_dir):
        if phase == LifecyclePhase.BUILD:
            populate_module(config.root_dir, module.name, config.version)

    return RecordingModuleRunner(hook)


@pytest.fixture
def fleet(config) -> BuildFleet:
    return BuildFleet(config, runner=_building_runner(config))


@pytest.fixture
def repo():
    with respx.mock(assert_all_called=False) as router:
        yield router


# =============================================================================
# Test: Wiring
# =============================================================================
class TestBuildFleetWiring:

    def test_defaults_from_config(self, config) -> None:
        fleet = BuildFleet(config)
        assert isinstance(fleet.driver.runner, RecordingModuleRunner)
        assert isinstance(fleet.publisher.transport, BundleUploadTransport)
        assert [m.name for m in fleet.registry] == ["base", "yaml"]

    def test_components_follow_config(self, tmp_path, modules) -> None:
        config = BuildConfig(
            root_dir=tmp_path,
            modules=modules,
            commands=CommandConfig(build="make"),
            publish=PublishConfig(layout="maven"),
        )
        fleet = BuildFleet(config)
        assert isinstance(fleet.driver.runner, CommandModuleRunner)
        assert isinstance(fleet.publisher.transport, MavenLayoutTransport)

    def test_invalid_registry_is_rejected(self, tmp_path) -> None:
        config = BuildConfig(
            root_dir=tmp_path,
            modules=(ModuleDescriptor(name="base", is_primary=True), ModuleDescriptor(name="base")),
        )
        with pytest.raises(ConfigurationError):
            BuildFleet(config)

    def test_channel(self, fleet) -> None:
        assert fleet.channel() == RepositoryChannel.SNAPSHOT
        assert fleet.channel("1.0.0") == RepositoryChannel.RELEASE

    def test_repr(self, fleet) -> None:
        assert repr(fleet) == f"BuildFleet(version='{VERSION}', modules=['base', 'yaml'])"


# =============================================================================
# Test: Stage Pipelines
# =============================================================================
class TestBuildFleetStages:

    async def test_run_build_aggregates(self, fleet, config) -> None:
        summary = await fleet.run_build()

        assert summary.succeeded
        assert summary.lifecycle.modules == ("base", "yaml")
        assert (config.output_dir / "JSky-1.0.0-SNAPSHOT.jar").is_file()
        assert (config.output_dir / "JSky-yaml-1.0.0-SNAPSHOT.jar").is_file()

    async def test_run_build_failure_halts(self, config) -> None:
        runner = _building_runner(config)
        runner.fail_on("base", LifecyclePhase.BUILD)
        fleet = BuildFleet(config, runner=runner)

        summary = await fleet.run_build()

        assert not summary.succeeded
        assert summary.aggregation is None
        assert summary.errors[0]["error_code"] == "MODULE_PHASE_FAILURE"
        assert runner.calls == [("base", "build")]
        assert not config.output_dir.exists()

    async def test_run_build_with_empty_module_warns(self, config) -> None:
        populate_module(config.root_dir, "base")
        fleet = BuildFleet(config, runner=RecordingModuleRunner())

        summary = await fleet.run_build()

        assert summary.succeeded
        assert [w["error_code"] for w in summary.warnings] == ["NO_ARTIFACTS_FOUND"]
        assert summary.warnings[0]["details"]["module"] == "yaml"
        assert summary.aggregation.for_module("yaml").artifacts == ()

    async def test_run_aggregate_uses_existing_outputs(self, populated) -> None:
        runner = RecordingModuleRunner()
        summary = await BuildFleet(populated, runner=runner).run_aggregate()

        assert runner.calls == []
        assert len(summary.aggregation.artifacts) == 4

    async def test_run_publish(self, fleet, repo) -> None:
        route = repo.post(SNAPSHOT_URL).respond(201)

        summary = await fleet.run_publish()

        assert summary.succeeded
        assert route.call_count == 2
        assert [o.status for o in summary.publish.outcomes] == [PublishStatus.PUBLISHED] * 2

    async def test_run_publish_reports_failed_modules(self, fleet, repo) -> None:
        repo.post(SNAPSHOT_URL).respond(403)

        summary = await fleet.run_publish()

        assert not summary.succeeded
        assert summary.errors == ()
        assert len(summary.publish.failures) == 2

    async def test_run_publish_skips_upload_after_build_failure(self, config, repo) -> None:
        runner = _building_runner(config)
        runner.fail_on("yaml", LifecyclePhase.BUILD)
        route = repo.post(SNAPSHOT_URL).respond(201)

        summary = await BuildFleet(config, runner=runner).run_publish()

        assert summary.publish is None
        assert route.call_count == 0

    async def test_run_coverage(self, fleet, config) -> None:
        summary = await fleet.run_coverage()

        assert summary.succeeded
        assert summary.coverage.contributing_modules == ["base", "yaml"]
        assert summary.coverage.xml_report.is_file()

    async def test_run_coverage_unwritable_report_dir(self, config) -> None:
        reporter = ManifestCoverageReporter()
        fleet = BuildFleet(config, runner=RecordingModuleRunner(), reporter=reporter)
        config.output_dir.mkdir()
        (config.output_dir / "coverage").write_text("not a directory")

        summary = await fleet.run_coverage()

        assert not summary.succeeded
        assert summary.coverage is None

    async def test_run_clean(self, fleet, config) -> None:
        await fleet.run_build()

        summary = await fleet.run_clean()

        assert summary.succeeded
        assert summary.removed_output is True
        assert not config.output_dir.exists()

    async def test_run_clean_twice(self, fleet) -> None:
        await fleet.run_clean()
        summary = await fleet.run_clean()
        assert summary.succeeded
        assert summary.removed_output is False

    async def test_run_build_reports_assembly_failure(self, tmp_path) -> None:
        config = BuildConfig(
            root_dir=tmp_path,
            modules=(
                ModuleDescriptor(name="base", is_primary=True),
                ModuleDescriptor(name="yaml", merged=True, embedded=("libs/dep.jar",)),
            ),
        )
        for name in ("base", "yaml"):
            populate_module(tmp_path, name, config.version)
        write_jar(tmp_path / "yaml" / "output" / "yaml-1.0.0-SNAPSHOT.jar", {
            "META-INF/services/net.codersky.Provider": "net.codersky.yaml.Provider\n",
        })
        write_jar(tmp_path / "yaml" / "libs" / "dep.jar", {
            "META-INF/services/net.codersky.Provider": b"\xff\xfe bad\n",
        })

        summary = await BuildFleet(config, runner=RecordingModuleRunner()).run_build()

        assert not summary.succeeded
        assert summary.aggregation is None
        assert summary.errors[0]["error_code"] == "ASSEMBLY_FAILED"
        assert summary.errors[0]["details"]["module"] == "yaml"
