"""
buildfleet.orchestration.layout - Module Directory Layout
===========================================================

Where things live inside one module directory, and which files in its output
directory count as packaged artifacts.

    <module>/output/<artifact files>        packaged archives
    <module>/output/classes/**              compiled output
    <module>/coverage-data/*.exec           coverage execution data
    <module>/sources/**                     source tree

Companion variants are recognised by their classifier suffix:
    foo-1.0.jar            plain archive (PRIMARY)
    foo-1.0-sources.jar    source bundle (SOURCES)
    foo-1.0-javadoc.jar    documentation bundle (never aggregated)
    foo-1.0-all.jar        merged fat archive (MERGED)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from buildfleet.core.config import BuildConfig
from buildfleet.core.enums import ArtifactKind
from buildfleet.core.models import ModuleDescriptor


SOURCES_CLASSIFIER = "-sources"
JAVADOC_CLASSIFIER = "-javadoc"
MERGED_CLASSIFIER = "-all"

COVERAGE_DATA_DIR = "coverage-data"
COVERAGE_DATA_PATTERN = "*.exec"
CLASSES_DIR = "classes"
SOURCES_DIR = "sources"


def classifier_of(path: Path) -> Optional[str]:
    """Return the companion classifier of an archive, or None for a plain one."""
    stem = path.stem
    for classifier in (SOURCES_CLASSIFIER, JAVADOC_CLASSIFIER, MERGED_CLASSIFIER):
        if stem.endswith(classifier):
            return classifier
    return None


def newest_first(paths: list[Path]) -> list[Path]:
    """Sort candidates newest modification time first, ties by file name."""
    return sorted(paths, key=lambda p: (-p.stat().st_mtime_ns, p.name))


class ModuleLayout:
    """Resolved paths of one module under the configured root."""

    def __init__(self, config: BuildConfig, module: ModuleDescriptor) -> None:
        self.module = module
        self.root = config.module_dir(module)
        self.output_dir = self.root / config.output_dir_name
        self.classes_dir = self.output_dir / CLASSES_DIR
        self.sources_dir = self.root / SOURCES_DIR
        self.coverage_data_dir = self.root / COVERAGE_DATA_DIR
        self._extensions = config.artifact_extensions

    def packaged_files(self) -> list[Path]:
        """Every file in the output directory with a packaged-artifact extension."""
        if not self.output_dir.is_dir():
            return []
        return sorted(
            p for p in self.output_dir.iterdir()
            if p.is_file() and p.suffix in self._extensions
        )

    def candidates(self, kind: ArtifactKind) -> list[Path]:
        """Files matching one artifact kind, newest first.

        PRIMARY excludes every companion variant, SOURCES keeps only
        ``-sources`` bundles, MERGED keeps only ``-all`` archives.
        Documentation bundles never match.
        """
        wanted = {
            ArtifactKind.PRIMARY: None,
            ArtifactKind.SOURCES: SOURCES_CLASSIFIER,
            ArtifactKind.MERGED: MERGED_CLASSIFIER,
        }[kind]
        return newest_first([p for p in self.packaged_files() if classifier_of(p) == wanted])

    def execution_data(self) -> list[Path]:
        if not self.coverage_data_dir.is_dir():
            return []
        return sorted(p for p in self.coverage_data_dir.glob(COVERAGE_DATA_PATTERN) if p.is_file())
