"""
buildfleet.core - Foundation Layer
====================================

    - config:      BuildConfig and its nested settings, load_config()
    - enums:       LifecyclePhase, ArtifactKind, RepositoryChannel, PublishStatus
    - models:      Frozen pydantic models passed between components
    - exceptions:  The BuildFleetError hierarchy
    - registry:    The static Module Registry

Dependency Rule:
    core/ depends on nothing else in the buildfleet package.
"""

from buildfleet.core.config import BuildConfig, load_config
from buildfleet.core.exceptions import BuildFleetError
from buildfleet.core.models import ModuleDescriptor, RunSummary

__all__ = [
    "BuildConfig",
    "load_config",
    "ModuleDescriptor",
    "RunSummary",
    "BuildFleetError",
]
