"""
buildfleet.core.config - Configuration Management
===================================================

One immutable configuration object for the whole run. The root version, the
root namespace and the module registry are read once at startup and passed to
every component; nothing downstream reads process-wide state.

Configuration Sources (highest priority first):
    1. Constructor arguments: BuildConfig(version="2.0.0"). load_config()
       passes the YAML file and its keyword overrides this way.
    2. Environment variables: BUILDFLEET_VERSION=2.0.0
    3. Default values defined below

Keep credentials out of the YAML file and in the environment; a key set in
the file shadows the matching environment variable.

Environment Variable Examples:
    BUILDFLEET_VERSION=1.0.0
    BUILDFLEET_ROOT_DIR=/workspace/jsky
    BUILDFLEET_PUBLISH__SNAPSHOT__URL=https://repo.example.org/snapshots
    BUILDFLEET_PUBLISH__SNAPSHOT__USERNAME=deployer
    BUILDFLEET_PUBLISH__SNAPSHOT__PASSWORD=...
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildfleet.core.enums import RepositoryChannel
from buildfleet.core.exceptions import ConfigurationError
from buildfleet.core.models import ModuleDescriptor


DEFAULT_CONFIG_FILE = "buildfleet.yaml"


# =============================================================================
# Repository Configuration
# =============================================================================
# One per channel. A channel is only usable when it has a URL and both halves
# of the basic-auth credential pair.
# =============================================================================
class RepositoryConfig(BaseModel):
    """Endpoint and basic-auth credentials for one repository channel.

    Attributes:
        url: Base URL of the remote repository.
        username: Basic-auth user name.
        password: Basic-auth password or token. Stored as SecretStr so it
            never leaks into logs or ``model_dump()`` output.
    """

    model_config = ConfigDict(frozen=True)

    url: Optional[str] = Field(
        default=None,
        description="Repository base URL (https://...)",
    )
    username: Optional[str] = Field(
        default=None,
        description="Basic-auth user name",
    )
    password: Optional[SecretStr] = Field(
        default=None,
        description="Basic-auth password or token",
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.username and self.password)


class PublishConfig(BaseModel):
    """Publish pipeline settings.

    Attributes:
        layout: ``bundle`` posts primary + sources in one multipart request.
            ``maven`` uploads each file into the Maven repository layout and
            rolls back on partial failure.
        timeout_seconds: Bound on every HTTP request. Expiry counts as a
            retryable network failure.
        max_retries: Retries for network failures before escalating to
            PartialPublishFailure.
        retry_initial_delay: Base backoff delay in seconds.
        retry_max_delay: Backoff cap in seconds.
    """

    model_config = ConfigDict(frozen=True)

    layout: Literal["bundle", "maven"] = Field(
        default="bundle",
        description="Repository transport layout",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retry attempts for network failures",
    )
    retry_initial_delay: float = Field(
        default=1.0,
        gt=0,
        le=30.0,
        description="Base delay for exponential backoff",
    )
    retry_max_delay: float = Field(
        default=30.0,
        gt=0,
        le=300.0,
        description="Backoff delay cap",
    )
    snapshot: RepositoryConfig = Field(default_factory=RepositoryConfig)
    release: RepositoryConfig = Field(default_factory=RepositoryConfig)

    def repository_for(self, channel: RepositoryChannel) -> RepositoryConfig:
        if channel == RepositoryChannel.SNAPSHOT:
            return self.snapshot
        return self.release


class CommandConfig(BaseModel):
    """Shell commands the CommandModuleRunner runs inside each module directory.

    ``{module}`` and ``{version}`` are substituted before execution. An empty
    string means the phase is a no-op for the module.
    """

    model_config = ConfigDict(frozen=True)

    build: str = Field(default="", description="Command for the BUILD phase")
    clean: str = Field(default="", description="Command for the CLEAN phase")
    timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Kill the module command after this many seconds",
    )


class CoverageConfig(BaseModel):
    """Combined coverage report settings."""

    model_config = ConfigDict(frozen=True)

    reporter: Literal["manifest", "jacoco"] = Field(
        default="manifest",
        description="Report generator: built-in manifest or external JaCoCo CLI",
    )
    jacoco_cli: Optional[str] = Field(
        default=None,
        description="Path to jacococli.jar (required for the jacoco reporter)",
    )
    java: str = Field(default="java", description="Java executable for the JaCoCo CLI")
    report_dir: str = Field(
        default="output/coverage",
        description="Report directory relative to the root directory",
    )
    xml_name: str = Field(default="coverage.xml")
    html_name: str = Field(default="index.html")


# =============================================================================
# Main Configuration
# =============================================================================
class BuildConfig(BaseSettings):
    """Top-level, immutable configuration for one orchestration run.

    Attributes:
        root_dir: Root of the multi-module project.
        version: Process-wide version string. Drives the rename policy and
            the repository channel.
        root_namespace: Group id prefix (``net.codersky``).
        artifact_family: Leading segment of every aggregated file name.
        prerelease_marker: Version suffix that selects the SNAPSHOT channel.
        output_dir_name: Name of the output directory, both inside each
            module and at the root.
        artifact_extensions: Extensions of packaged artifacts.
        log_level: Logging level for the CLI.
        modules: The static Module Registry entries.
    """

    root_dir: Path = Field(default=Path("."))
    version: str = Field(default="1.0.0-SNAPSHOT", min_length=1)
    root_namespace: str = Field(default="net.codersky", min_length=1)
    artifact_family: str = Field(default="JSky", min_length=1)
    prerelease_marker: str = Field(default="-SNAPSHOT", min_length=1)
    output_dir_name: str = Field(default="output", min_length=1)
    artifact_extensions: tuple[str, ...] = Field(default=(".jar",))
    log_level: str = Field(default="INFO")

    modules: tuple[ModuleDescriptor, ...] = Field(default=())
    commands: CommandConfig = Field(default_factory=CommandConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    coverage: CoverageConfig = Field(default_factory=CoverageConfig)

    # -------------------------------------------------------------------------
    # env_nested_delimiter lets BUILDFLEET_PUBLISH__RELEASE__URL reach
    # config.publish.release.url.
    # -------------------------------------------------------------------------
    model_config = SettingsConfigDict(
        env_prefix="BUILDFLEET_",
        env_nested_delimiter="__",
        case_sensitive=False,
        frozen=True,
    )

    @field_validator("artifact_extensions")
    @classmethod
    def _normalize_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("at least one artifact extension is required")
        return tuple(ext if ext.startswith(".") else f".{ext}" for ext in value)

    @property
    def output_dir(self) -> Path:
        """Root output directory that receives the aggregated artifacts."""
        return self.root_dir / self.output_dir_name

    def module_dir(self, module: ModuleDescriptor) -> Path:
        return self.root_dir / module.relative_dir


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None, **overrides: Any) -> BuildConfig:
    """Load configuration from a YAML file, environment variables and overrides.

    Args:
        path: YAML file path. If None, ``buildfleet.yaml`` in the current
            directory is used when it exists.
        **overrides: Keyword values that win over the file.

    Returns:
        A validated BuildConfig. A relative ``root_dir`` in the file is
        resolved against the file's own directory.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigurationError: If the file's top level is not a mapping.
    """
    if path is None:
        default_path = Path(DEFAULT_CONFIG_FILE)
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path) as f:
            raw_data = yaml.safe_load(f)

        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigurationError(
                message=f"Configuration file must contain a mapping: {path}",
                details={"path": str(config_path), "type": type(raw_data).__name__},
            )
        yaml_data = raw_data

        if "root_dir" in yaml_data:
            root_dir = Path(yaml_data["root_dir"])
            if not root_dir.is_absolute():
                yaml_data["root_dir"] = config_path.parent / root_dir

    yaml_data.update(overrides)
    return BuildConfig(**yaml_data)
