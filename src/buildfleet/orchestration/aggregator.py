"""
buildfleet.orchestration.aggregator - Artifact Aggregator
===========================================================

Collects every module's packaged artifacts into the root output directory
under canonical names.

Rename Policy:
    default module:   <family>-<module>-<version>.<ext>
    primary module:   <family>-<version>.<ext>
    sources bundle:   same as above with "-sources" before the extension
    merged archive:   named exactly like the primary archive it replaces

    family=JSky, version=1.0.0-SNAPSHOT:
        base (primary)  → JSky-1.0.0-SNAPSHOT.jar
        yaml            → JSky-yaml-1.0.0-SNAPSHOT.jar
        yaml sources    → JSky-yaml-1.0.0-SNAPSHOT-sources.jar

Files are copied, never moved. An existing file with the same target name is
overwritten. When a module's output holds several candidates for the same
kind (e.g. a stale jar from a previous version), the newest by modification
time wins and the others are reported in a warning.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog

from buildfleet.core.config import BuildConfig
from buildfleet.core.enums import ArtifactKind
from buildfleet.core.exceptions import BuildFleetError, NoArtifactsFound
from buildfleet.core.models import (
    AggregationReport,
    Artifact,
    ModuleAggregation,
    ModuleDescriptor,
)
from buildfleet.orchestration.layout import SOURCES_CLASSIFIER, ModuleLayout


logger = structlog.get_logger()


def target_file_name(
    family: str,
    module_name: str,
    kind: ArtifactKind,
    version: str,
    is_primary: bool,
    extension: str = ".jar",
) -> str:
    """Compute the aggregated file name. Pure: no file system access.

    Example:
        >>> target_file_name("JSky", "yaml", ArtifactKind.PRIMARY, "1.0.0", False)
        'JSky-yaml-1.0.0.jar'
        >>> target_file_name("JSky", "base", ArtifactKind.PRIMARY, "1.0.0", True)
        'JSky-1.0.0.jar'
    """
    parts = [family] if is_primary else [family, module_name]
    parts.append(version)
    name = "-".join(parts)
    if kind == ArtifactKind.SOURCES:
        name += SOURCES_CLASSIFIER
    if not extension.startswith("."):
        extension = f".{extension}"
    return f"{name}{extension}"


class ArtifactAggregator:
    """Copies and renames module artifacts into ``BuildConfig.output_dir``."""

    def __init__(self, config: BuildConfig) -> None:
        self._config = config
        self._logger = logger.bind(component="artifact_aggregator")

    @property
    def output_dir(self) -> Path:
        return self._config.output_dir

    def aggregate(self, modules: Iterable[ModuleDescriptor]) -> AggregationReport:
        """Aggregate every module and return the per-module report.

        A module without artifacts contributes a NoArtifactsFound warning;
        the pass always runs to the end.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        entries = [self._aggregate_module(module) for module in modules]
        report = AggregationReport(output_dir=self.output_dir, modules=tuple(entries))

        self._logger.info(
            "aggregation_completed",
            output_dir=str(self.output_dir),
            artifacts=len(report.artifacts),
            warnings=len(report.warnings),
        )
        return report

    def _aggregate_module(self, module: ModuleDescriptor) -> ModuleAggregation:
        layout = ModuleLayout(self._config, module)
        version = module.resolve_version(self._config.version)
        artifacts: list[Artifact] = []
        warnings: list[dict[str, Any]] = []

        main_kind = ArtifactKind.MERGED if module.merged else ArtifactKind.PRIMARY
        main_candidates = layout.candidates(main_kind)
        if not main_candidates and module.merged:
            main_kind = ArtifactKind.PRIMARY
            main_candidates = layout.candidates(main_kind)
            if main_candidates:
                warnings.append(self._warn(BuildFleetError(
                    message="Merged archive missing; falling back to the plain archive",
                    error_code="MERGED_ARTIFACT_MISSING",
                    details={"module": module.name, "output_dir": str(layout.output_dir)},
                )))

        if not main_candidates:
            warnings.append(self._warn(NoArtifactsFound(
                message=f"No packaged artifacts found for module {module.name}",
                module=module.name,
                details={"output_dir": str(layout.output_dir)},
            )))
            return ModuleAggregation(module=module.name, warnings=tuple(warnings))

        selections = [(main_kind, main_candidates)]
        source_candidates = layout.candidates(ArtifactKind.SOURCES)
        if source_candidates:
            selections.append((ArtifactKind.SOURCES, source_candidates))
        else:
            warnings.append(self._warn(NoArtifactsFound(
                message=f"No sources bundle found for module {module.name}",
                module=module.name,
                error_code="NO_SOURCES_FOUND",
                details={"output_dir": str(layout.output_dir)},
            )))

        for kind, candidates in selections:
            chosen = candidates[0]
            if len(candidates) > 1:
                warnings.append(self._warn(BuildFleetError(
                    message=f"Several {kind.value} candidates for {module.name}; using {chosen.name}",
                    error_code="STALE_ARTIFACTS_IGNORED",
                    details={
                        "module": module.name,
                        "chosen": chosen.name,
                        "ignored": [p.name for p in candidates[1:]],
                    },
                )))

            name = target_file_name(
                self._config.artifact_family,
                module.name,
                kind,
                version,
                module.is_primary,
                chosen.suffix,
            )
            target = self.output_dir / name
            shutil.copy2(chosen, target)
            artifacts.append(Artifact(
                kind=kind,
                module=module.name,
                source_path=chosen,
                target_name=name,
                target_path=target,
            ))
            self._logger.debug(
                "artifact_copied",
                module=module.name,
                kind=kind.value,
                source=chosen.name,
                target=name,
            )

        return ModuleAggregation(
            module=module.name,
            artifacts=tuple(artifacts),
            warnings=tuple(warnings),
        )

    def _warn(self, warning: BuildFleetError) -> dict[str, Any]:
        """Log a per-module warning and return its serialized form."""
        self._logger.warning(warning.error_code.lower(), error=warning.message, details=warning.details)
        return warning.to_dict()
