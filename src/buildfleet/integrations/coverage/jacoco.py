"""
buildfleet.integrations.coverage.jacoco - JaCoCo CLI Reporter
===============================================================

Runs the external JaCoCo command line tool over the coverage union:

    java -jar jacococli.jar report a.exec b.exec \\
        --classfiles base/output/classes --classfiles yaml/output/classes \\
        --sourcefiles base/sources --sourcefiles yaml/sources \\
        --xml output/coverage/coverage.xml \\
        --html output/coverage

``--html`` takes a directory; JaCoCo writes ``index.html`` into it, so the
HTML report path must be named ``index.html``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import structlog

from buildfleet.core.exceptions import CoverageError
from buildfleet.core.models import CombinedReport
from buildfleet.integrations.coverage.base import CoverageReporter


logger = structlog.get_logger()

_STDERR_TAIL = 4000


class JacocoCliReporter(CoverageReporter):
    """CoverageReporter backed by ``jacococli.jar report``."""

    name = "jacoco"

    def __init__(
        self,
        jacoco_cli: Path,
        java: str = "java",
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._jacoco_cli = jacoco_cli
        self._java = java
        self._timeout_seconds = timeout_seconds
        self._logger = logger.bind(component="jacoco_cli_reporter")

    def build_command(self, report: CombinedReport) -> list[str]:
        command = [self._java, "-jar", str(self._jacoco_cli), "report"]
        command += [str(p) for p in report.execution_data]
        for class_dir in report.class_dirs:
            command += ["--classfiles", str(class_dir)]
        for source_dir in report.source_dirs:
            command += ["--sourcefiles", str(source_dir)]
        command += ["--xml", str(report.xml_report), "--html", str(report.html_report.parent)]
        return command

    async def generate(self, report: CombinedReport) -> None:
        if report.html_report.name != "index.html":
            raise CoverageError(
                message="The JaCoCo HTML report is always written as index.html",
                error_code="COVERAGE_CONFIG_ERROR",
                details={"html": str(report.html_report)},
            )

        command = self.build_command(report)
        self._logger.info("jacoco_report_starting", execution_files=len(report.execution_data))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CoverageError(
                message=f"Cannot start JaCoCo CLI: {exc}",
                details={"command": command},
            ) from exc

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise CoverageError(
                message="JaCoCo report generation timed out",
                error_code="COVERAGE_TIMEOUT",
                details={"command": command, "timeout_seconds": self._timeout_seconds},
            ) from None

        if process.returncode != 0:
            raise CoverageError(
                message=f"JaCoCo CLI exited with status {process.returncode}",
                details={
                    "command": command,
                    "returncode": process.returncode,
                    "stderr": stderr.decode(errors="replace")[-_STDERR_TAIL:],
                },
            )

        self._logger.info("jacoco_report_written", xml=str(report.xml_report))
