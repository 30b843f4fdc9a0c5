"""
buildfleet.orchestration.assembler - Fat-Artifact Assembler
=============================================================

Merges a module's plain archive with its embedded (non-published) dependency
archives into one ``<stem>-all.<ext>`` archive next to it. Downstream, that
merged archive replaces the plain one as the module's main publication.

Entry names are copied verbatim. Dependency packages are NEVER relocated:
consumers depend on the same dependency versions directly, and relocated
copies would load as duplicate, incompatible classes at runtime.

Merge rules:
    1. The module's own entries go first; the first occurrence of a name wins.
    2. ``META-INF/services/*`` files are concatenated line-wise, duplicates
       dropped, so every provider stays registered.
    3. Signature files of embedded archives (META-INF/*.SF, *.DSA, *.RSA,
       *.EC) are dropped; they would no longer match the merged content.
    4. Entries keep their original timestamps and order, so assembling the
       same inputs twice yields the same bytes.
"""

from __future__ import annotations

import os
import tempfile
import zipfile
import zlib
from pathlib import Path

import structlog

from buildfleet.core.config import BuildConfig
from buildfleet.core.enums import ArtifactKind
from buildfleet.core.exceptions import AssemblyError
from buildfleet.core.models import ModuleDescriptor
from buildfleet.orchestration.layout import MERGED_CLASSIFIER, ModuleLayout


logger = structlog.get_logger()

SERVICES_PREFIX = "META-INF/services/"
_SIGNATURE_SUFFIXES = (".SF", ".DSA", ".RSA", ".EC")
# Errors an unreadable input archive can raise.
_READ_ERRORS = (zipfile.BadZipFile, zlib.error, NotImplementedError, UnicodeDecodeError, OSError)


def _is_signature(name: str) -> bool:
    if not name.startswith("META-INF/") or name.count("/") != 1:
        return False
    return name.upper().endswith(_SIGNATURE_SUFFIXES)


def _service_lines(data: bytes) -> list[str]:
    return [line.strip() for line in data.decode("utf-8").splitlines() if line.strip()]


class FatArtifactAssembler:
    """Builds merged archives for modules with ``merged=True``.

    Example:
        >>> assembler = FatArtifactAssembler(config)
        >>> assembler.assemble(registry.get("yaml"))
        PosixPath('.../yaml/output/yaml-1.0.0-all.jar')
    """

    def __init__(self, config: BuildConfig) -> None:
        self._config = config
        self._logger = logger.bind(component="fat_artifact_assembler")

    def assemble(self, module: ModuleDescriptor) -> Path:
        """Assemble the merged archive for ``module`` and return its path.

        Raises:
            AssemblyError: The plain archive or an embedded archive is
                missing or unreadable, or the merged archive cannot be written.
        """
        layout = ModuleLayout(self._config, module)

        candidates = layout.candidates(ArtifactKind.PRIMARY)
        if not candidates:
            raise AssemblyError(
                message=f"No packaged archive to merge for module {module.name}",
                module=module.name,
                details={"output_dir": str(layout.output_dir)},
            )
        plain = candidates[0]
        embedded = [layout.root / rel for rel in module.embedded]

        missing = [str(p) for p in embedded if not p.is_file()]
        if missing:
            raise AssemblyError(
                message=f"Embedded archives missing for module {module.name}",
                module=module.name,
                details={"missing": missing},
            )

        target = plain.with_name(f"{plain.stem}{MERGED_CLASSIFIER}{plain.suffix}")
        entries: dict[str, tuple[zipfile.ZipInfo, bytes]] = {}
        duplicates = 0

        for index, archive in enumerate([plain, *embedded]):
            is_dependency = index > 0
            try:
                with zipfile.ZipFile(archive) as zf:
                    for info in zf.infolist():
                        name = info.filename
                        if is_dependency and _is_signature(name):
                            continue
                        data = b"" if info.is_dir() else zf.read(info)

                        if name.startswith(SERVICES_PREFIX) and not info.is_dir() and name in entries:
                            first_info, existing = entries[name]
                            lines = _service_lines(existing)
                            lines += [ln for ln in _service_lines(data) if ln not in lines]
                            entries[name] = (first_info, ("\n".join(lines) + "\n").encode("utf-8"))
                            continue

                        if name in entries:
                            duplicates += 1
                            continue
                        entries[name] = (info, data)
            except _READ_ERRORS as exc:
                raise AssemblyError(
                    message=f"Cannot read archive {archive.name}: {exc}",
                    module=module.name,
                    details={"archive": str(archive)},
                ) from exc

        try:
            self._write(target, entries)
        except OSError as exc:
            raise AssemblyError(
                message=f"Cannot write merged archive {target.name}: {exc}",
                module=module.name,
                details={"target": str(target)},
            ) from exc

        self._logger.info(
            "merged_artifact_assembled",
            module=module.name,
            plain=plain.name,
            embedded=[p.name for p in embedded],
            entries=len(entries),
            skipped_duplicates=duplicates,
            target=target.name,
        )
        return target

    @staticmethod
    def _write(target: Path, entries: dict[str, tuple[zipfile.ZipInfo, bytes]]) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=".merge-", suffix=target.suffix, dir=target.parent)
        os.close(fd)
        try:
            with zipfile.ZipFile(tmp_name, "w", compression=zipfile.ZIP_DEFLATED) as out:
                for name, (info, data) in entries.items():
                    entry = zipfile.ZipInfo(name, date_time=info.date_time)
                    entry.external_attr = info.external_attr
                    entry.compress_type = zipfile.ZIP_STORED if info.is_dir() else zipfile.ZIP_DEFLATED
                    out.writestr(entry, data)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
