"""
buildfleet.integrations.coverage.factory - Coverage Reporter Factory
=====================================================================
"""

from __future__ import annotations

from pathlib import Path

from buildfleet.core.config import CoverageConfig
from buildfleet.core.exceptions import ConfigurationError
from buildfleet.integrations.coverage.base import CoverageReporter


def create_coverage_reporter(coverage: CoverageConfig, root_dir: Path) -> CoverageReporter:
    """Create the reporter named by ``coverage.reporter``.

    Raises:
        ConfigurationError: ``jacoco`` was chosen without a ``jacoco_cli`` path.
    """
    if coverage.reporter == "jacoco":
        if not coverage.jacoco_cli:
            raise ConfigurationError(
                message="coverage.jacoco_cli must point at jacococli.jar for the jacoco reporter",
                error_code="MISSING_JACOCO_CLI",
            )
        from buildfleet.integrations.coverage.jacoco import JacocoCliReporter
        cli = Path(coverage.jacoco_cli)
        if not cli.is_absolute():
            cli = root_dir / cli
        return JacocoCliReporter(cli, java=coverage.java)

    from buildfleet.integrations.coverage.manifest import ManifestCoverageReporter
    return ManifestCoverageReporter(base_dir=root_dir)
