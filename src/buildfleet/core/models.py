"""
buildfleet.core.models - Core Data Models
===========================================

Pydantic models that flow between the buildfleet components.

Design Principles:
    1. Immutable: every model is frozen. Descriptors are built once per run,
       artifacts and coverage units are write-once.
    2. Self-validating: Pydantic enforces type/value constraints at creation.
    3. Serializable: every result type dumps cleanly to JSON for summaries.

Model Map:
    ModuleDescriptor  → one entry of the Module Registry
    Artifact          → one file copied into the root output directory
    ModuleAggregation → per-module slice of an AggregationReport
    CoverageUnit      → per-module (sources, classes, exec data) triple
    PublishRecord     → (group id, artifact id, version, artifacts)
    PublishOutcome    → what happened to one module's publication
    LifecycleResult   → which modules ran a BUILD/CLEAN phase
    RunSummary        → everything the user sees at the end of a run
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from buildfleet.core.enums import (
    ArtifactKind,
    LifecyclePhase,
    PublishStatus,
    RepositoryChannel,
)


def _now() -> datetime:
    """Current UTC timestamp. Every timestamp in buildfleet is UTC."""
    return datetime.now(timezone.utc)


# =============================================================================
# Module Descriptor
# =============================================================================
# The static identity of a module. Everything downstream (rename policy,
# group id, coverage paths) is derived from these fields plus the immutable
# BuildConfig, never from the module's directory name or a string match.
# =============================================================================
class ModuleDescriptor(BaseModel):
    """Static description of one independently buildable module.

    Attributes:
        name: Unique module name. Also the published artifact id.
        is_primary: The one module whose artifact names drop the module-name
            segment (``JSky-1.0.0.jar`` instead of ``JSky-base-1.0.0.jar``).
        namespace_segment: Segment appended to the root namespace to form the
            group id. Defaults to the module name.
        version: Per-module version override. None inherits the root version.
        merged: Whether this module ships a fat artifact that embeds its
            ``embedded`` dependency archives.
        embedded: Dependency archives to embed, relative to the module
            directory.
        path: Module directory relative to the root. Defaults to the name.

    Example:
        >>> ModuleDescriptor(name="yaml", merged=True, embedded=("libs/snakeyaml.jar",))
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        min_length=1,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$",
        description="Unique module name (also the artifact id)",
    )
    is_primary: bool = Field(
        default=False,
        description="Artifacts of this module omit the module-name segment",
    )
    namespace_segment: Optional[str] = Field(
        default=None,
        description="Group id segment under the root namespace (defaults to name)",
    )
    version: Optional[str] = Field(
        default=None,
        description="Version override (None = inherit the root version)",
    )
    merged: bool = Field(
        default=False,
        description="Produce a merged fat artifact for this module",
    )
    embedded: tuple[str, ...] = Field(
        default=(),
        description="Dependency archives embedded into the merged artifact",
    )
    path: Optional[str] = Field(
        default=None,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*(/[A-Za-z0-9][A-Za-z0-9._-]*)*$",
        description="Module directory relative to the root (defaults to name)",
    )

    @property
    def namespace(self) -> str:
        return self.namespace_segment or self.name

    @property
    def relative_dir(self) -> str:
        return self.path or self.name

    def resolve_version(self, root_version: str) -> str:
        """Return the module's own version, or the root version if unset."""
        return self.version or root_version


# =============================================================================
# Artifact
# =============================================================================
class Artifact(BaseModel):
    """A packaged file copied into the root output directory.

    ``target_name`` is computed by the rename policy
    (``buildfleet.orchestration.aggregator.target_file_name``) and depends only
    on (family, module name, kind, version, is_primary).
    """

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    module: str
    source_path: Path = Field(description="File inside the module output directory")
    target_name: str = Field(description="File name after the rename policy")
    target_path: Path = Field(description="Where the copy landed in the root output")


class ModuleAggregation(BaseModel):
    """Per-module slice of an AggregationReport."""

    model_config = ConfigDict(frozen=True)

    module: str
    artifacts: tuple[Artifact, ...] = ()
    warnings: tuple[dict[str, Any], ...] = ()

    def get(self, kind: ArtifactKind) -> Optional[Artifact]:
        for artifact in self.artifacts:
            if artifact.kind == kind:
                return artifact
        return None

    @property
    def main_artifact(self) -> Optional[Artifact]:
        """The MERGED artifact if present, otherwise the PRIMARY one."""
        return self.get(ArtifactKind.MERGED) or self.get(ArtifactKind.PRIMARY)


class AggregationReport(BaseModel):
    """Result of one aggregation pass over the registry."""

    model_config = ConfigDict(frozen=True)

    output_dir: Path
    modules: tuple[ModuleAggregation, ...] = ()
    created_at: datetime = Field(default_factory=_now)

    def for_module(self, name: str) -> Optional[ModuleAggregation]:
        for entry in self.modules:
            if entry.module == name:
                return entry
        return None

    @property
    def artifacts(self) -> list[Artifact]:
        return [a for entry in self.modules for a in entry.artifacts]

    @property
    def warnings(self) -> list[dict[str, Any]]:
        return [w for entry in self.modules for w in entry.warnings]


# =============================================================================
# Coverage
# =============================================================================
class CoverageUnit(BaseModel):
    """One module's contribution to the combined coverage report."""

    model_config = ConfigDict(frozen=True)

    module: str
    source_dirs: tuple[Path, ...] = ()
    class_dirs: tuple[Path, ...] = ()
    execution_data: tuple[Path, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.execution_data


class CombinedReport(BaseModel):
    """The single report produced from the union of every CoverageUnit.

    Attributes:
        xml_report: Machine-readable output file.
        html_report: Human-readable output file.
        units: The per-module inputs, kept for the run summary.
        contributing_modules: Modules that supplied at least one exec file.
    """

    model_config = ConfigDict(frozen=True)

    xml_report: Path
    html_report: Path
    units: tuple[CoverageUnit, ...] = ()
    source_dirs: tuple[Path, ...] = ()
    class_dirs: tuple[Path, ...] = ()
    execution_data: tuple[Path, ...] = ()

    @property
    def contributing_modules(self) -> list[str]:
        return [u.module for u in self.units if not u.is_empty]


# =============================================================================
# Publishing
# =============================================================================
class PublishRecord(BaseModel):
    """The publication submitted to a repository channel.

    ``group_id`` is ``<root namespace>.<lower(namespace segment)>`` and
    ``artifact_id`` is the module name.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str
    artifact_id: str
    version: str
    packaging: str = "jar"
    primary: Artifact
    sources: Artifact

    @property
    def files(self) -> tuple[Artifact, Artifact]:
        return (self.primary, self.sources)


class PublishOutcome(BaseModel):
    """What happened to one module's publication."""

    model_config = ConfigDict(frozen=True)

    module: str
    status: PublishStatus
    channel: Optional[RepositoryChannel] = None
    endpoint: Optional[str] = None
    group_id: Optional[str] = None
    version: Optional[str] = None
    published: tuple[str, ...] = Field(
        default=(),
        description="Target names of the artifacts that were published",
    )
    attempts: int = 0
    error: Optional[dict[str, Any]] = None


class PublishSummary(BaseModel):
    """Per-module publish outcomes for one run."""

    model_config = ConfigDict(frozen=True)

    outcomes: tuple[PublishOutcome, ...] = ()

    @property
    def succeeded(self) -> bool:
        return all(o.status != PublishStatus.FAILED for o in self.outcomes)

    @property
    def failures(self) -> list[PublishOutcome]:
        return [o for o in self.outcomes if o.status == PublishStatus.FAILED]


# =============================================================================
# Lifecycle and Run Summary
# =============================================================================
class LifecycleResult(BaseModel):
    """Record of one BUILD or CLEAN fan-out across the registry."""

    model_config = ConfigDict(frozen=True)

    phase: LifecyclePhase
    modules: tuple[str, ...] = ()
    merged_artifacts: tuple[Path, ...] = ()
    started_at: datetime = Field(default_factory=_now)
    completed_at: Optional[datetime] = None


class RunSummary(BaseModel):
    """Everything a run reports back to the user.

    Each stage fills in its own field. ``errors`` holds serialized
    BuildFleetError dicts, ``warnings`` the aggregation warnings.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    lifecycle: Optional[LifecycleResult] = None
    aggregation: Optional[AggregationReport] = None
    publish: Optional[PublishSummary] = None
    coverage: Optional[CombinedReport] = None
    removed_output: Optional[bool] = None
    warnings: tuple[dict[str, Any], ...] = ()
    errors: tuple[dict[str, Any], ...] = ()

    @property
    def succeeded(self) -> bool:
        if self.errors:
            return False
        return self.publish is None or self.publish.succeeded
