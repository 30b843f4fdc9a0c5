"""
buildfleet.integrations.repository.bundle - Single-Request Bundle Upload
=========================================================================

Posts the whole publication in one multipart request:

    POST <endpoint>
      groupId, artifactId, version, packaging=jar
      primary=<jar>, sources=<sources jar>

The endpoint accepts or rejects the bundle as a whole, so there is never a
half-published record to roll back.
"""

from __future__ import annotations

import httpx
import structlog

from buildfleet.core.models import PublishRecord
from buildfleet.integrations.repository.base import (
    JAR_CONTENT_TYPE,
    RepositoryTransport,
    classify_http_error,
    read_artifact,
)


logger = structlog.get_logger()


class BundleUploadTransport(RepositoryTransport):
    """Atomic multipart upload of primary + sources."""

    layout = "bundle"

    def __init__(self) -> None:
        self._logger = logger.bind(component="bundle_upload_transport")

    async def submit(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        record: PublishRecord,
    ) -> list[str]:
        data = {
            "groupId": record.group_id,
            "artifactId": record.artifact_id,
            "version": record.version,
            "packaging": record.packaging,
        }
        files = {
            "primary": (record.primary.target_name, read_artifact(record.primary), JAR_CONTENT_TYPE),
            "sources": (record.sources.target_name, read_artifact(record.sources), JAR_CONTENT_TYPE),
        }

        try:
            response = await client.post(base_url, data=data, files=files)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise classify_http_error(exc, record.artifact_id, base_url) from exc

        self._logger.info(
            "bundle_uploaded",
            url=base_url,
            group_id=record.group_id,
            artifact_id=record.artifact_id,
            version=record.version,
            status_code=response.status_code,
        )
        return [base_url]
