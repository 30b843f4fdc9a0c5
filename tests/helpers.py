"""
Module-tree builders shared by the test suite.

    <tmp>/
        base/                       primary module
            output/base-<v>.jar
            output/base-<v>-sources.jar
            output/classes/net/codersky/base/Base.class
            sources/net/codersky/base/Base.java
            coverage-data/test.exec
        yaml/                       second module, same shape
        output/                     root output (created by the aggregator)
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import Union


SNAPSHOT_URL = "https://repo.example.org/snapshots"
RELEASE_URL = "https://repo.example.org/releases"
VERSION = "1.0.0-SNAPSHOT"
FIXED_DATE = (2024, 1, 1, 0, 0, 0)


def write_jar(path: Path, entries: dict[str, Union[str, bytes]]) -> Path:
    """Write a zip archive with fixed entry timestamps."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(zipfile.ZipInfo(name, date_time=FIXED_DATE), data)
    return path


def jar_entries(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as zf:
        return {info.filename: zf.read(info) for info in zf.infolist()}


def set_mtime(path: Path, seconds: int) -> None:
    os.utime(path, (seconds, seconds))


def populate_module(
    root: Path,
    name: str,
    version: str = VERSION,
    *,
    sources: bool = True,
    coverage: bool = True,
) -> Path:
    """Lay down the outputs a module BUILD would leave behind."""
    module_dir = root / name
    output = module_dir / "output"
    class_name = name.capitalize()

    write_jar(output / f"{name}-{version}.jar", {
        "META-INF/MANIFEST.MF": "Manifest-Version: 1.0\n",
        f"net/codersky/{name}/{class_name}.class": f"class {class_name}",
    })
    if sources:
        write_jar(output / f"{name}-{version}-sources.jar", {
            f"net/codersky/{name}/{class_name}.java": f"class {class_name} {{}}",
        })

    classes = output / "classes" / "net" / "codersky" / name
    classes.mkdir(parents=True, exist_ok=True)
    (classes / f"{class_name}.class").write_bytes(b"\xca\xfe\xba\xbe")

    source_tree = module_dir / "sources" / "net" / "codersky" / name
    source_tree.mkdir(parents=True, exist_ok=True)
    (source_tree / f"{class_name}.java").write_text(f"class {class_name} {{}}")

    if coverage:
        data = module_dir / "coverage-data"
        data.mkdir(parents=True, exist_ok=True)
        (data / "test.exec").write_bytes(b"exec-" + name.encode())
    return module_dir
