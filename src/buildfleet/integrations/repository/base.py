"""
buildfleet.integrations.repository.base - Abstract Repository Transport
=========================================================================

A RepositoryTransport knows how to put one PublishRecord (primary + sources)
onto a remote repository. The Publish Pipeline owns channel selection,
credentials and retries; the transport owns the wire format.

    ┌─────────────────┐  submit(client, url, record)  ┌─────────────────────┐
    │ PublishPipeline │ ────────────────────────────→ │ RepositoryTransport │
    │  (+ retries)    │ ←── published URLs / error ── │   (abstract)        │
    └─────────────────┘                               └──────────┬──────────┘
                                                       ┌─────────┴─────────┐
                                                  ┌────▼─────┐      ┌──────▼─────┐
                                                  │  Bundle  │      │   Maven    │
                                                  │ (atomic) │      │ (rollback) │
                                                  └──────────┘      └────────────┘

Errors leave a transport already classified:
    timeouts, connection errors, 5xx  → NetworkTimeout (retryable)
    any other non-2xx status          → PartialPublishFailure
    unreadable local artifact         → PartialPublishFailure
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from buildfleet.core.exceptions import NetworkTimeout, PartialPublishFailure, PublishError
from buildfleet.core.models import Artifact, PublishRecord


JAR_CONTENT_TYPE = "application/java-archive"


def read_artifact(artifact: Artifact) -> bytes:
    """Read an aggregated file for upload.

    Raises:
        PartialPublishFailure: The file vanished or cannot be read.
    """
    try:
        return artifact.target_path.read_bytes()
    except OSError as exc:
        raise PartialPublishFailure(
            message=f"Cannot read {artifact.target_name}: {exc}",
            module=artifact.module,
            error_code="ARTIFACT_UNREADABLE",
            details={"path": str(artifact.target_path)},
        ) from exc


def classify_http_error(exc: httpx.HTTPError, module: str, url: str) -> PublishError:
    """Map an httpx error onto the publish error taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return NetworkTimeout(
            message=f"Request to {url} timed out",
            module=module,
            details={"url": url, "error_type": type(exc).__name__},
        )
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status >= 500:
            return NetworkTimeout(
                message=f"Repository answered {status} for {url}",
                module=module,
                error_code="NETWORK_ERROR",
                details={"url": url, "status_code": status},
            )
        return PartialPublishFailure(
            message=f"Repository rejected {url} with status {status}",
            module=module,
            error_code="PUBLISH_REJECTED",
            details={"url": url, "status_code": status},
        )
    return NetworkTimeout(
        message=f"Network error talking to {url}: {exc}",
        module=module,
        error_code="NETWORK_ERROR",
        details={"url": url, "error_type": type(exc).__name__},
    )


class RepositoryTransport(ABC):
    """Uploads one publication to a repository endpoint."""

    layout: str = "abstract"

    @abstractmethod
    async def submit(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        record: PublishRecord,
    ) -> list[str]:
        """Publish ``record`` as one logical unit.

        Args:
            client: Client already carrying basic auth and the timeout.
            base_url: Channel endpoint.
            record: Identifiers plus the primary and sources artifacts.

        Returns:
            URLs that now hold the publication.

        Raises:
            NetworkTimeout: Retryable failure; nothing remains on the remote.
            PartialPublishFailure: Non-retryable failure.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(layout={self.layout!r})"
