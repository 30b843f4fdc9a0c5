"""
BuildFleet - Multi-Module Build Artifact Orchestrator
======================================================

BuildFleet drives a multi-module project through its root-level continuations:

    Build      every module, fail-fast, merged fat archives included
    Aggregate  copy + rename artifacts into one root output directory
    Publish    push to the snapshot or release channel chosen by the version
    Coverage   one combined report from every module's execution data
    Clean      every module, then the root output tree

Quick Start:
    >>> from buildfleet import BuildFleet
    >>> from buildfleet.core import load_config
    >>> summary = await BuildFleet(load_config()).run_publish()
"""

__version__ = "0.1.0"

from buildfleet.facade import BuildFleet

__all__ = ["BuildFleet", "__version__"]
