"""
Shared Test Fixtures for BuildFleet
=====================================

Fixtures build a throwaway multi-module project under ``tmp_path`` (see
``tests/helpers.py`` for the tree layout). They are organized by layer:

    1. Configuration and registry
    2. Components
"""

from __future__ import annotations

import os

import pytest

from buildfleet.core.config import BuildConfig, PublishConfig, RepositoryConfig
from buildfleet.core.models import ModuleDescriptor
from buildfleet.core.registry import ModuleRegistry
from buildfleet.integrations.runner.recording import RecordingModuleRunner
from buildfleet.orchestration.aggregator import ArtifactAggregator
from tests.helpers import RELEASE_URL, SNAPSHOT_URL, VERSION, populate_module


# =============================================================================
# Configuration and Registry
# =============================================================================

@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep BUILDFLEET_* variables of the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("BUILDFLEET_"):
            monkeypatch.delenv(key)


@pytest.fixture
def modules() -> tuple[ModuleDescriptor, ...]:
    """``base`` (primary) and ``yaml``."""
    return (
        ModuleDescriptor(name="base", is_primary=True),
        ModuleDescriptor(name="yaml"),
    )


@pytest.fixture
def publish_config() -> PublishConfig:
    """Both channels configured, fast retries."""
    return PublishConfig(
        timeout_seconds=5,
        max_retries=2,
        retry_initial_delay=0.01,
        retry_max_delay=0.05,
        snapshot=RepositoryConfig(url=SNAPSHOT_URL, username="deployer", password="s3cret"),
        release=RepositoryConfig(url=RELEASE_URL, username="deployer", password="s3cret"),
    )


@pytest.fixture
def config(tmp_path, modules, publish_config) -> BuildConfig:
    """BuildConfig rooted at ``tmp_path`` with the two-module registry."""
    return BuildConfig(
        root_dir=tmp_path,
        version=VERSION,
        modules=modules,
        publish=publish_config,
    )


@pytest.fixture
def registry(modules) -> ModuleRegistry:
    return ModuleRegistry(modules)


@pytest.fixture
def populated(config) -> BuildConfig:
    """``config`` with both module output trees on disk."""
    for module in config.modules:
        populate_module(config.root_dir, module.name)
    return config


# =============================================================================
# Components
# =============================================================================

@pytest.fixture
def runner() -> RecordingModuleRunner:
    return RecordingModuleRunner()


@pytest.fixture
def aggregator(config) -> ArtifactAggregator:
    return ArtifactAggregator(config)
