"""
buildfleet.integrations.coverage - Combined Coverage Reporters
================================================================
"""

from buildfleet.integrations.coverage.base import CoverageReporter
from buildfleet.integrations.coverage.factory import create_coverage_reporter
from buildfleet.integrations.coverage.jacoco import JacocoCliReporter
from buildfleet.integrations.coverage.manifest import ManifestCoverageReporter

__all__ = [
    "CoverageReporter",
    "JacocoCliReporter",
    "ManifestCoverageReporter",
    "create_coverage_reporter",
]
