"""
buildfleet.integrations.coverage.manifest - Built-in Coverage Manifest
=========================================================================

Default reporter. Needs no JVM: it records which execution data, class
directories and source directories make up the combined report, per module
and as a whole.

    <coverage-report modules="2" execution-files="3">
      <module name="base" execution-files="2">
        <execfile path="base/coverage-data/test.exec" size="1024"/>
        <classfiles path="base/output/classes"/>
        <sourcefiles path="base/sources"/>
      </module>
      ...
    </coverage-report>

Paths are written relative to ``base_dir`` when they live under it, so the
same tree produces the same manifest wherever it is checked out.
"""

from __future__ import annotations

import html
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

import structlog

from buildfleet.core.exceptions import CoverageError
from buildfleet.core.models import CombinedReport, CoverageUnit
from buildfleet.integrations.coverage.base import CoverageReporter


logger = structlog.get_logger()


class ManifestCoverageReporter(CoverageReporter):
    """Writes an XML manifest and an HTML summary of the coverage union."""

    name = "manifest"

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir
        self._logger = logger.bind(component="manifest_coverage_reporter")

    def _display(self, path: Path) -> str:
        if self._base_dir is not None:
            try:
                return path.relative_to(self._base_dir).as_posix()
            except ValueError:
                pass
        return path.as_posix()

    async def generate(self, report: CombinedReport) -> None:
        try:
            self._write_xml(report)
            self._write_html(report)
        except OSError as exc:
            raise CoverageError(
                message=f"Cannot write coverage report: {exc}",
                details={"xml": str(report.xml_report), "html": str(report.html_report)},
            ) from exc

        self._logger.info(
            "coverage_manifest_written",
            xml=str(report.xml_report),
            html=str(report.html_report),
            modules=report.contributing_modules,
        )

    # -------------------------------------------------------------------------
    # XML
    # -------------------------------------------------------------------------
    def _write_xml(self, report: CombinedReport) -> None:
        root = ET.Element(
            "coverage-report",
            {
                "modules": str(len(report.units)),
                "execution-files": str(len(report.execution_data)),
            },
        )
        for unit in report.units:
            self._module_element(root, unit)

        tree = ET.ElementTree(root)
        ET.indent(tree)
        tree.write(report.xml_report, encoding="utf-8", xml_declaration=True)

    def _module_element(self, parent: ET.Element, unit: CoverageUnit) -> None:
        element = ET.SubElement(
            parent,
            "module",
            {"name": unit.module, "execution-files": str(len(unit.execution_data))},
        )
        for exec_file in unit.execution_data:
            ET.SubElement(
                element,
                "execfile",
                {"path": self._display(exec_file), "size": str(exec_file.stat().st_size)},
            )
        for class_dir in unit.class_dirs:
            ET.SubElement(element, "classfiles", {"path": self._display(class_dir)})
        for source_dir in unit.source_dirs:
            ET.SubElement(element, "sourcefiles", {"path": self._display(source_dir)})

    # -------------------------------------------------------------------------
    # HTML
    # -------------------------------------------------------------------------
    def _write_html(self, report: CombinedReport) -> None:
        rows = []
        for unit in report.units:
            rows.append(
                "    <tr><td>{name}</td><td>{execs}</td><td>{classes}</td><td>{sources}</td></tr>".format(
                    name=html.escape(unit.module),
                    execs=len(unit.execution_data),
                    classes=len(unit.class_dirs),
                    sources=len(unit.source_dirs),
                )
            )

        page = "\n".join([
            "<!DOCTYPE html>",
            "<html>",
            "<head><meta charset=\"utf-8\"><title>Combined coverage</title></head>",
            "<body>",
            "  <h1>Combined coverage</h1>",
            f"  <p>{len(report.execution_data)} execution data files from "
            f"{len(report.contributing_modules)} of {len(report.units)} modules.</p>",
            "  <table>",
            "    <tr><th>Module</th><th>Execution data</th><th>Class dirs</th><th>Source dirs</th></tr>",
            *rows,
            "  </table>",
            "</body>",
            "</html>",
            "",
        ])
        report.html_report.write_text(page, encoding="utf-8")
