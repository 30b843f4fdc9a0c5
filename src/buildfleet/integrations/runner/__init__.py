"""
buildfleet.integrations.runner - Module Runners
=================================================

How a lifecycle phase is actually carried out for one module:
    - ModuleRunner (ABC):      the contract the Task Graph Driver calls
    - CommandModuleRunner:     shells out to the configured build/clean command
    - RecordingModuleRunner:   no-op, records calls (outputs already on disk)
    - create_module_runner():  picks one from BuildConfig.commands
"""

from buildfleet.integrations.runner.base import ModuleRunner
from buildfleet.integrations.runner.command import CommandModuleRunner
from buildfleet.integrations.runner.factory import create_module_runner
from buildfleet.integrations.runner.recording import RecordingModuleRunner

__all__ = [
    "ModuleRunner",
    "CommandModuleRunner",
    "RecordingModuleRunner",
    "create_module_runner",
]
