"""
buildfleet.integrations.coverage.base - Abstract Coverage Reporter
====================================================================

The Coverage Aggregator collects the union of every module's execution data,
class directories and source directories into a CombinedReport. A
CoverageReporter turns that union into the two report files the
CombinedReport points at:

    report.xml_report   machine-readable
    report.html_report  human-readable

Reporters never look at the Module Registry; one call produces one report for
the whole project.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from buildfleet.core.models import CombinedReport


class CoverageReporter(ABC):
    """Writes the combined XML and HTML coverage reports."""

    name: str = "abstract"

    @abstractmethod
    async def generate(self, report: CombinedReport) -> None:
        """Write ``report.xml_report`` and ``report.html_report``.

        The parent directory of both files already exists.

        Raises:
            CoverageError: The report could not be produced.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
