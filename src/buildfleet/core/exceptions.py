"""
buildfleet.core.exceptions - Custom Exception Hierarchy
=========================================================

Structured exceptions for buildfleet. Components raise and catch specific
exception types that carry contextual information instead of bare strings.

Exception Hierarchy:
    BuildFleetError (base)
        ├── ConfigurationError        - Invalid config or module registry
        ├── NoArtifactsFound          - Module produced nothing (warning level)
        ├── ModulePhaseFailure        - A module's build/clean failed (fatal)
        ├── AssemblyError             - Fat artifact could not be assembled
        ├── PublishError              - Base for per-module publish failures
        │     ├── MissingCredentialsError
        │     ├── PartialPublishFailure
        │     └── NetworkTimeout      - Retryable
        └── CoverageError             - Combined report generation failed

Propagation:
    BUILD/CLEAN failures halt the run (fail-fast). Publish failures are
    isolated per module and collected into the PublishSummary.

Usage:
    >>> raise MissingCredentialsError(
    ...     message="No credentials configured for the snapshot channel",
    ...     module="yaml",
    ...     channel="snapshot",
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
class BuildFleetError(Exception):
    """Base exception for all buildfleet errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable code, UPPER_SNAKE_CASE. The retry policy
            decides on this code alone.
        details: Arbitrary debugging context (module, paths, status codes...).
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception for structured logs and run summaries."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
# Raised at startup. Don't try to run with a bad registry or config file.
# =============================================================================
class ConfigurationError(BuildFleetError):
    """Raised when the configuration or module registry is invalid.

    Common Causes:
        - Duplicate module names in the registry
        - More than one module flagged as primary
        - A YAML config file whose top level is not a mapping
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Module-Scoped Errors
# =============================================================================
# Every error below belongs to exactly one module. The module name is folded
# into ``details`` so a run summary can group errors per module.
# =============================================================================
class _ModuleError(BuildFleetError):
    def __init__(
        self,
        message: str,
        module: str,
        error_code: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = dict(details or {})
        enriched_details["module"] = module

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.module = module


class NoArtifactsFound(_ModuleError):
    """A module's output directory holds no packaged artifact.

    This is warning level: the aggregator records it and moves on, since a
    module may legitimately produce nothing distributable.
    """

    def __init__(
        self,
        message: str,
        module: str,
        error_code: str = "NO_ARTIFACTS_FOUND",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, module=module, error_code=error_code, details=details)


class ModulePhaseFailure(_ModuleError):
    """A module's BUILD or CLEAN invocation failed.

    Fatal to the whole run: the Task Graph Driver raises it and no root-level
    continuation (aggregation, deletion) executes.

    Attributes:
        phase: The lifecycle phase that failed ("build" or "clean").
    """

    def __init__(
        self,
        message: str,
        module: str,
        phase: str,
        error_code: str = "MODULE_PHASE_FAILURE",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = dict(details or {})
        enriched_details["phase"] = phase

        super().__init__(message=message, module=module, error_code=error_code, details=enriched_details)

        self.phase = phase


class AssemblyError(_ModuleError):
    """The fat artifact for a module could not be assembled."""

    def __init__(
        self,
        message: str,
        module: str,
        error_code: str = "ASSEMBLY_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, module=module, error_code=error_code, details=details)


# =============================================================================
# Publish Errors
# =============================================================================
# All publish errors are fatal for ONE module's publication only. The
# PublishPipeline catches PublishError, records it, and keeps going.
# =============================================================================
class PublishError(_ModuleError):
    """Base class for failures while publishing one module."""

    def __init__(
        self,
        message: str,
        module: str,
        error_code: str = "PUBLISH_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, module=module, error_code=error_code, details=details)


class MissingCredentialsError(PublishError):
    """No endpoint or credentials are configured for the selected channel.

    Attributes:
        channel: The channel whose configuration was missing.
    """

    def __init__(
        self,
        message: str,
        module: str,
        channel: str,
        error_code: str = "MISSING_CREDENTIALS",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = dict(details or {})
        enriched_details["channel"] = channel

        super().__init__(message=message, module=module, error_code=error_code, details=enriched_details)

        self.channel = channel


class PartialPublishFailure(PublishError):
    """The publication could not be completed as a whole.

    Raised after any partially uploaded files were rolled back, so the remote
    repository never holds a publishable-but-incomplete record.
    """

    def __init__(
        self,
        message: str,
        module: str,
        error_code: str = "PARTIAL_PUBLISH_FAILURE",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, module=module, error_code=error_code, details=details)


class NetworkTimeout(PublishError):
    """A publish request exceeded its timeout or lost its connection.

    Retryable. Once the retry policy is exhausted it escalates to
    PartialPublishFailure.
    """

    def __init__(
        self,
        message: str,
        module: str,
        error_code: str = "NETWORK_TIMEOUT",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, module=module, error_code=error_code, details=details)


# =============================================================================
# Coverage Error
# =============================================================================
class CoverageError(BuildFleetError):
    """The combined coverage report could not be generated."""

    def __init__(
        self,
        message: str,
        error_code: str = "COVERAGE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)
