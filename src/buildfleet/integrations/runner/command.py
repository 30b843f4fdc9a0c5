"""
buildfleet.integrations.runner.command - Shell Command Module Runner
=====================================================================

Runs the configured BUILD / CLEAN command of a module as a subprocess with
the module directory as its working directory. ``{module}`` and ``{version}``
placeholders in the command template are substituted first.

Example configuration (buildfleet.yaml):

    commands:
      build: "./gradlew :{module}:build -Pversion={version}"
      clean: "./gradlew :{module}:clean"
      timeout_seconds: 900
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import structlog

from buildfleet.core.config import CommandConfig
from buildfleet.core.enums import LifecyclePhase
from buildfleet.core.exceptions import ModulePhaseFailure
from buildfleet.core.models import ModuleDescriptor
from buildfleet.integrations.runner.base import ModuleRunner


logger = structlog.get_logger()

# Last bytes of stderr kept in the failure details.
_STDERR_TAIL = 4000


class CommandModuleRunner(ModuleRunner):
    """ModuleRunner that shells out to the configured per-phase command."""

    def __init__(self, commands: CommandConfig) -> None:
        self._commands = commands
        self._logger = logger.bind(component="command_module_runner")

    def command_for(
        self,
        module: ModuleDescriptor,
        phase: LifecyclePhase,
        version: str,
    ) -> Optional[str]:
        """Render the command for a phase, or None when none is configured."""
        template = self._commands.build if phase == LifecyclePhase.BUILD else self._commands.clean
        if not template.strip():
            return None
        return template.format(module=module.name, version=version)

    async def run(
        self,
        module: ModuleDescriptor,
        phase: LifecyclePhase,
        module_dir: Path,
        version: str,
    ) -> None:
        command = self.command_for(module, phase, version)
        if command is None:
            self._logger.debug("module_command_skipped", module=module.name, phase=phase.value)
            return

        # The root directory is the natural working directory for wrapper
        # scripts like gradlew, so fall back to it when the module has none.
        cwd = module_dir if module_dir.is_dir() else module_dir.parent
        self._logger.info("module_command_starting", module=module.name, phase=phase.value, command=command)

        process = await asyncio.create_subprocess_shell(
            command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self._commands.timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ModulePhaseFailure(
                message=f"{phase.value} of {module.name} timed out",
                module=module.name,
                phase=phase.value,
                error_code="MODULE_PHASE_TIMEOUT",
                details={"command": command, "timeout_seconds": self._commands.timeout_seconds},
            ) from None

        if process.returncode != 0:
            raise ModulePhaseFailure(
                message=f"{phase.value} of {module.name} exited with status {process.returncode}",
                module=module.name,
                phase=phase.value,
                details={
                    "command": command,
                    "returncode": process.returncode,
                    "stderr": stderr.decode(errors="replace")[-_STDERR_TAIL:],
                },
            )

        self._logger.info("module_command_completed", module=module.name, phase=phase.value)
