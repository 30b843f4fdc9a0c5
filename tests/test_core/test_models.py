"""
Tests for buildfleet.core.models and buildfleet.core.exceptions
=================================================================

What's Being Tested:
    - ModuleDescriptor: name validation, namespace / directory / version defaults
    - ModuleAggregation: artifact lookup, MERGED preferred over PRIMARY
    - PublishSummary / RunSummary: success flags
    - Exceptions: error codes and to_dict() serialization
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from buildfleet.core.enums import ArtifactKind, LifecyclePhase, PublishStatus, RepositoryChannel
from buildfleet.core.exceptions import (
    BuildFleetError,
    MissingCredentialsError,
    ModulePhaseFailure,
    NetworkTimeout,
    PublishError,
)
from buildfleet.core.models import (
    Artifact,
    CombinedReport,
    CoverageUnit,
    ModuleAggregation,
    ModuleDescriptor,
    PublishOutcome,
    PublishSummary,
    RunSummary,
)


def _artifact(kind: ArtifactKind, name: str = "JSky-yaml-1.0.0.jar") -> Artifact:
    return Artifact(
        kind=kind,
        module="yaml",
        source_path=Path("/src") / name,
        target_name=name,
        target_path=Path("/out") / name,
    )


# =============================================================================
# Test: Enums
# =============================================================================
class TestEnums:

    def test_enums_compare_with_strings(self) -> None:
        assert LifecyclePhase.BUILD == "build"
        assert RepositoryChannel.SNAPSHOT == "snapshot"
        assert PublishStatus.SKIPPED == "skipped"

    def test_main_kinds(self) -> None:
        assert ArtifactKind.PRIMARY.is_main
        assert ArtifactKind.MERGED.is_main
        assert not ArtifactKind.SOURCES.is_main


# =============================================================================
# Test: ModuleDescriptor
# =============================================================================
class TestModuleDescriptor:

    def test_defaults(self) -> None:
        module = ModuleDescriptor(name="yaml")
        assert module.is_primary is False
        assert module.merged is False
        assert module.embedded == ()
        assert module.namespace == "yaml"
        assert module.relative_dir == "yaml"

    def test_namespace_segment_override(self) -> None:
        module = ModuleDescriptor(name="yaml-api", namespace_segment="YAML")
        assert module.namespace == "YAML"

    def test_version_override(self) -> None:
        assert ModuleDescriptor(name="a").resolve_version("1.0.0") == "1.0.0"
        assert ModuleDescriptor(name="a", version="2.1.0").resolve_version("1.0.0") == "2.1.0"

    @pytest.mark.parametrize("name", ["", "has space", "../escape", "-leading"])
    def test_invalid_names_rejected(self, name: str) -> None:
        with pytest.raises(ValidationError):
            ModuleDescriptor(name=name)

    def test_nested_relative_path(self) -> None:
        assert ModuleDescriptor(name="yaml", path="libs/yaml").relative_dir == "libs/yaml"

    @pytest.mark.parametrize("path", ["../x", "/abs", "libs/../../x", "libs//yaml", "libs/", "./yaml"])
    def test_paths_outside_root_rejected(self, path: str) -> None:
        with pytest.raises(ValidationError):
            ModuleDescriptor(name="yaml", path=path)

    def test_frozen(self) -> None:
        module = ModuleDescriptor(name="yaml")
        with pytest.raises(ValidationError):
            module.name = "json"


# =============================================================================
# Test: Aggregation Results
# =============================================================================
class TestModuleAggregation:

    def test_get_by_kind(self) -> None:
        sources = _artifact(ArtifactKind.SOURCES, "JSky-yaml-1.0.0-sources.jar")
        entry = ModuleAggregation(module="yaml", artifacts=(_artifact(ArtifactKind.PRIMARY), sources))
        assert entry.get(ArtifactKind.SOURCES) is sources
        assert entry.get(ArtifactKind.MERGED) is None

    def test_main_artifact_prefers_merged(self) -> None:
        merged = _artifact(ArtifactKind.MERGED)
        entry = ModuleAggregation(module="yaml", artifacts=(merged,))
        assert entry.main_artifact is merged

    def test_main_artifact_none_when_empty(self) -> None:
        assert ModuleAggregation(module="yaml").main_artifact is None


class TestCoverageModels:

    def test_unit_without_exec_data_is_empty(self) -> None:
        unit = CoverageUnit(module="yaml", class_dirs=(Path("/c"),))
        assert unit.is_empty

    def test_contributing_modules(self) -> None:
        report = CombinedReport(
            xml_report=Path("/r/coverage.xml"),
            html_report=Path("/r/index.html"),
            units=(
                CoverageUnit(module="base", execution_data=(Path("/b.exec"),)),
                CoverageUnit(module="yaml"),
            ),
        )
        assert report.contributing_modules == ["base"]


# =============================================================================
# Test: Summaries
# =============================================================================
class TestSummaries:

    def test_publish_summary_fails_on_any_failure(self) -> None:
        summary = PublishSummary(outcomes=(
            PublishOutcome(module="base", status=PublishStatus.PUBLISHED),
            PublishOutcome(module="yaml", status=PublishStatus.FAILED),
        ))
        assert not summary.succeeded
        assert [o.module for o in summary.failures] == ["yaml"]

    def test_skipped_is_not_a_failure(self) -> None:
        summary = PublishSummary(outcomes=(
            PublishOutcome(module="docs", status=PublishStatus.SKIPPED),
        ))
        assert summary.succeeded

    def test_run_summary_with_errors_fails(self) -> None:
        assert RunSummary(version="1.0.0").succeeded
        assert not RunSummary(version="1.0.0", errors=({"error_code": "X"},)).succeeded


# =============================================================================
# Test: Exceptions
# =============================================================================
class TestExceptions:

    def test_to_dict(self) -> None:
        error = BuildFleetError("boom", error_code="BOOM", details={"a": 1})
        assert error.to_dict() == {
            "error_type": "BuildFleetError",
            "message": "boom",
            "error_code": "BOOM",
            "details": {"a": 1},
        }

    def test_module_phase_failure_details(self) -> None:
        error = ModulePhaseFailure("failed", module="yaml", phase="build")
        assert error.error_code == "MODULE_PHASE_FAILURE"
        assert error.details == {"module": "yaml", "phase": "build"}
        assert error.module == "yaml"

    def test_missing_credentials_is_a_publish_error(self) -> None:
        error = MissingCredentialsError("no creds", module="yaml", channel="release")
        assert isinstance(error, PublishError)
        assert error.details["channel"] == "release"
        assert error.error_code == "MISSING_CREDENTIALS"

    def test_network_timeout_code(self) -> None:
        assert NetworkTimeout("slow", module="yaml").error_code == "NETWORK_TIMEOUT"
