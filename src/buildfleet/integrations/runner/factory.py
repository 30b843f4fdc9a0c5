"""
buildfleet.integrations.runner.factory - Module Runner Factory
===============================================================
"""

from __future__ import annotations

from buildfleet.core.config import CommandConfig
from buildfleet.integrations.runner.base import ModuleRunner


def create_module_runner(commands: CommandConfig) -> ModuleRunner:
    """Create the runner matching the command configuration.

    With no build or clean command configured there is nothing to execute,
    so the RecordingModuleRunner is returned and module outputs are taken
    as they are on disk.
    """
    if commands.build.strip() or commands.clean.strip():
        from buildfleet.integrations.runner.command import CommandModuleRunner
        return CommandModuleRunner(commands)

    from buildfleet.integrations.runner.recording import RecordingModuleRunner
    return RecordingModuleRunner()
