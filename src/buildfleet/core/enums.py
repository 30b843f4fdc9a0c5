"""
buildfleet.core.enums - Type-Safe Enumerations
================================================

All enumeration types used throughout buildfleet.

Every enum inherits from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They can be compared with plain strings: LifecyclePhase.BUILD == "build"

    ┌─────────────────────────────────────────────────────────────────┐
    │  TASK GRAPH                                                     │
    │    LifecyclePhase: BUILD / CLEAN dispatched to every module     │
    ├─────────────────────────────────────────────────────────────────┤
    │  AGGREGATION                                                    │
    │    ArtifactKind: PRIMARY / SOURCES / MERGED                     │
    ├─────────────────────────────────────────────────────────────────┤
    │  PUBLISHING                                                     │
    │    RepositoryChannel: SNAPSHOT / RELEASE                        │
    │    PublishStatus: per-module publish outcome                    │
    └─────────────────────────────────────────────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Lifecycle Phase
# =============================================================================
# The two phases the Task Graph Driver fans out to every module before the
# root-level continuation runs:
#
#   BUILD → (module builds) → aggregation / coverage / publish
#   CLEAN → (module cleans) → root output tree deletion
# =============================================================================
class LifecyclePhase(str, Enum):
    """Module lifecycle phases dispatched by the Task Graph Driver."""

    BUILD = "build"     # Produce module outputs (jars, classes, exec data)
    CLEAN = "clean"     # Tear down module outputs


# =============================================================================
# Artifact Kind
# =============================================================================
# PRIMARY and MERGED are mutually exclusive for one module: a module that
# opts into a fat artifact publishes MERGED in place of its plain PRIMARY.
# =============================================================================
class ArtifactKind(str, Enum):
    """Kinds of packaged artifact a module contributes to the root output.

    Usage:
        >>> ArtifactKind.SOURCES.value
        'sources'
    """

    PRIMARY = "primary"   # The module's plain packaged archive
    SOURCES = "sources"   # Companion source bundle
    MERGED = "merged"     # Fat archive embedding dependency code

    @property
    def is_main(self) -> bool:
        """True for the kinds that act as the module's main publication."""
        return self in (ArtifactKind.PRIMARY, ArtifactKind.MERGED)


# =============================================================================
# Repository Channel
# =============================================================================
class RepositoryChannel(str, Enum):
    """Remote repository channel a publish targets.

    Selection is a pure function of the version string; see
    ``buildfleet.orchestration.publisher.select_channel``.
    """

    SNAPSHOT = "snapshot"
    RELEASE = "release"


class PublishStatus(str, Enum):
    """Outcome of one module's publish attempt."""

    PUBLISHED = "published"
    FAILED = "failed"
    SKIPPED = "skipped"   # Nothing to publish (module produced no artifact)
