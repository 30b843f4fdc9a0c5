"""
buildfleet.orchestration.publisher - Publish Pipeline
=======================================================

Pushes each module's aggregated artifacts to the repository channel that the
version string selects.

Per module:
    1. group_id    = <root_namespace>.<lower(namespace segment)>
       artifact_id = module name
    2. channel     = SNAPSHOT if the version ends with the pre-release marker,
                     RELEASE otherwise
    3. endpoint + credentials of that channel, or MissingCredentialsError
    4. main artifact (MERGED, else PRIMARY) + SOURCES submitted as one
       publication through the configured RepositoryTransport, retried on
       network failures

Failures are fatal for one module only. ``publish_all`` records them in the
PublishSummary and carries on with the next module.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

import httpx
import structlog

from buildfleet.core.config import BuildConfig, RepositoryConfig
from buildfleet.core.enums import ArtifactKind, PublishStatus, RepositoryChannel
from buildfleet.core.exceptions import (
    MissingCredentialsError,
    PartialPublishFailure,
    PublishError,
)
from buildfleet.core.models import (
    AggregationReport,
    ModuleAggregation,
    ModuleDescriptor,
    PublishOutcome,
    PublishRecord,
    PublishSummary,
)
from buildfleet.integrations.repository.base import RepositoryTransport
from buildfleet.orchestration.error_handler import ErrorHandler


logger = structlog.get_logger()

DEFAULT_PRERELEASE_MARKER = "-SNAPSHOT"


def select_channel(version: str, marker: str = DEFAULT_PRERELEASE_MARKER) -> RepositoryChannel:
    """Pick the repository channel from the version string alone.

    Example:
        >>> select_channel("1.0.0-SNAPSHOT")
        <RepositoryChannel.SNAPSHOT: 'snapshot'>
        >>> select_channel("1.0.0")
        <RepositoryChannel.RELEASE: 'release'>
    """
    if version.endswith(marker):
        return RepositoryChannel.SNAPSHOT
    return RepositoryChannel.RELEASE


def group_id_for(root_namespace: str, module: ModuleDescriptor) -> str:
    return f"{root_namespace}.{module.namespace.lower()}"


class PublishPipeline:
    """Publishes aggregated artifacts, one module at a time.

    Attributes:
        _config: Supplies the namespace, marker, channels and timeout.
        _transport: Wire format used against the repository.
        _error_handler: Retries network failures with backoff.

    Example:
        >>> pipeline = PublishPipeline(config, BundleUploadTransport(), ErrorHandler())
        >>> summary = await pipeline.publish_all(registry, report)
        >>> summary.succeeded
        True
    """

    def __init__(
        self,
        config: BuildConfig,
        transport: RepositoryTransport,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._error_handler = error_handler or ErrorHandler()
        self._logger = logger.bind(component="publish_pipeline", layout=transport.layout)

    @property
    def transport(self) -> RepositoryTransport:
        return self._transport

    def channel_for(self, version: str) -> RepositoryChannel:
        return select_channel(version, self._config.prerelease_marker)

    def build_record(
        self,
        module: ModuleDescriptor,
        aggregation: ModuleAggregation,
        version: str,
    ) -> PublishRecord:
        """Assemble the publication for one module.

        Raises:
            PartialPublishFailure: The main artifact or the sources bundle is
                missing, so the publication would be incomplete.
        """
        primary = aggregation.main_artifact
        sources = aggregation.get(ArtifactKind.SOURCES)
        missing = [
            kind.value
            for kind, artifact in ((ArtifactKind.PRIMARY, primary), (ArtifactKind.SOURCES, sources))
            if artifact is None
        ]
        if missing:
            raise PartialPublishFailure(
                message=f"Cannot publish {module.name}: missing {', '.join(missing)} artifact",
                module=module.name,
                error_code="INCOMPLETE_PUBLICATION",
                details={"missing": missing},
            )

        return PublishRecord(
            group_id=group_id_for(self._config.root_namespace, module),
            artifact_id=module.name,
            version=version,
            primary=primary,
            sources=sources,
        )

    def _repository(self, module: ModuleDescriptor, channel: RepositoryChannel) -> RepositoryConfig:
        repository = self._config.publish.repository_for(channel)
        if not repository.is_configured:
            raise MissingCredentialsError(
                message=f"No endpoint or credentials configured for the {channel.value} channel",
                module=module.name,
                channel=channel.value,
            )
        return repository

    async def publish(
        self,
        module: ModuleDescriptor,
        aggregation: ModuleAggregation,
        version: str,
    ) -> PublishOutcome:
        """Publish one module's artifacts.

        Raises:
            MissingCredentialsError: The selected channel is not configured.
            PartialPublishFailure: Incomplete artifacts, a rejected upload, or
                network failures beyond the retry budget.
        """
        channel = self.channel_for(version)
        repository = self._repository(module, channel)
        record = self.build_record(module, aggregation, version)
        endpoint = repository.url

        self._logger.info(
            "publish_starting",
            module=module.name,
            channel=channel.value,
            endpoint=endpoint,
            group_id=record.group_id,
            version=version,
        )

        async with httpx.AsyncClient(
            auth=(repository.username, repository.password.get_secret_value()),
            timeout=httpx.Timeout(self._config.publish.timeout_seconds),
        ) as client:
            _, attempts = await self._error_handler.run_with_retry(
                lambda: self._transport.submit(client, endpoint, record),
                module=module.name,
            )

        self._logger.info(
            "publish_completed",
            module=module.name,
            channel=channel.value,
            attempts=attempts,
        )
        return PublishOutcome(
            module=module.name,
            status=PublishStatus.PUBLISHED,
            channel=channel,
            endpoint=endpoint,
            group_id=record.group_id,
            version=version,
            published=tuple(a.target_name for a in record.files),
            attempts=attempts,
        )

    async def publish_all(
        self,
        modules: Iterable[ModuleDescriptor],
        report: AggregationReport,
    ) -> PublishSummary:
        """Publish every module, isolating failures per module."""
        outcomes: list[PublishOutcome] = []

        for module in modules:
            version = module.resolve_version(self._config.version)
            aggregation = report.for_module(module.name)

            if aggregation is None or not aggregation.artifacts:
                self._logger.info("publish_skipped", module=module.name, reason="no_artifacts")
                outcomes.append(PublishOutcome(
                    module=module.name,
                    status=PublishStatus.SKIPPED,
                    version=version,
                ))
                continue

            try:
                outcomes.append(await self.publish(module, aggregation, version))
            except PublishError as exc:
                outcomes.append(self._failed(module, version, exc))
            except Exception as exc:
                # Anything unexpected still fails only this module
                failure = PartialPublishFailure(
                    message=f"Publishing {module.name} failed: {exc}",
                    module=module.name,
                    details={"error_type": type(exc).__name__},
                )
                outcomes.append(self._failed(module, version, failure))

        summary = PublishSummary(outcomes=tuple(outcomes))
        self._logger.info(
            "publish_all_completed",
            modules=len(outcomes),
            failures=len(summary.failures),
        )
        return summary

    def _failed(self, module: ModuleDescriptor, version: str, exc: PublishError) -> PublishOutcome:
        channel = self.channel_for(version)
        self._logger.error(
            "publish_failed",
            module=module.name,
            channel=channel.value,
            error_code=exc.error_code,
            error=exc.message,
        )
        return PublishOutcome(
            module=module.name,
            status=PublishStatus.FAILED,
            channel=channel,
            endpoint=self._config.publish.repository_for(channel).url,
            group_id=group_id_for(self._config.root_namespace, module),
            version=version,
            error=exc.to_dict(),
        )
