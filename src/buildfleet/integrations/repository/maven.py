"""
buildfleet.integrations.repository.maven - Maven Repository Layout Upload
==========================================================================

Uploads a publication file by file into the standard Maven repository layout:

    <endpoint>/net/codersky/yaml/yaml/1.0.0/yaml-1.0.0.jar
    <endpoint>/net/codersky/yaml/yaml/1.0.0/yaml-1.0.0.jar.sha1
    <endpoint>/net/codersky/yaml/yaml/1.0.0/yaml-1.0.0-sources.jar
    <endpoint>/net/codersky/yaml/yaml/1.0.0/yaml-1.0.0-sources.jar.sha1
    <endpoint>/net/codersky/yaml/yaml/1.0.0/yaml-1.0.0.pom
    <endpoint>/net/codersky/yaml/yaml/1.0.0/yaml-1.0.0.pom.sha1

A Maven repository has no multi-file transaction, so every path uploaded so
far is DELETEd again when a later PUT fails. The POM goes last: until it is
present, resolvers do not consider the version published.
"""

from __future__ import annotations

import hashlib

import httpx
import structlog

from buildfleet.core.exceptions import PartialPublishFailure, PublishError
from buildfleet.core.models import PublishRecord
from buildfleet.integrations.repository.base import (
    JAR_CONTENT_TYPE,
    RepositoryTransport,
    classify_http_error,
    read_artifact,
)


logger = structlog.get_logger()

_POM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0"
         xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
         xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 https://maven.apache.org/xsd/maven-4.0.0.xsd">
  <modelVersion>4.0.0</modelVersion>
  <groupId>{group_id}</groupId>
  <artifactId>{artifact_id}</artifactId>
  <version>{version}</version>
  <packaging>{packaging}</packaging>
</project>
"""


def render_pom(record: PublishRecord) -> bytes:
    return _POM_TEMPLATE.format(
        group_id=record.group_id,
        artifact_id=record.artifact_id,
        version=record.version,
        packaging=record.packaging,
    ).encode("utf-8")


def version_directory(base_url: str, record: PublishRecord) -> str:
    group_path = record.group_id.replace(".", "/")
    return f"{base_url.rstrip('/')}/{group_path}/{record.artifact_id}/{record.version}"


class MavenLayoutTransport(RepositoryTransport):
    """Per-file PUT upload with rollback on partial failure."""

    layout = "maven"

    def __init__(self) -> None:
        self._logger = logger.bind(component="maven_layout_transport")

    def _payloads(self, record: PublishRecord) -> list[tuple[str, bytes, str]]:
        base = f"{record.artifact_id}-{record.version}"
        return [
            (f"{base}.jar", read_artifact(record.primary), JAR_CONTENT_TYPE),
            (f"{base}-sources.jar", read_artifact(record.sources), JAR_CONTENT_TYPE),
            (f"{base}.pom", render_pom(record), "application/xml"),
        ]

    async def submit(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        record: PublishRecord,
    ) -> list[str]:
        directory = version_directory(base_url, record)
        uploaded: list[str] = []

        for file_name, content, content_type in self._payloads(record):
            digest = hashlib.sha1(content).hexdigest().encode("ascii")
            for url, body, ctype in (
                (f"{directory}/{file_name}", content, content_type),
                (f"{directory}/{file_name}.sha1", digest, "text/plain"),
            ):
                try:
                    response = await client.put(url, content=body, headers={"Content-Type": ctype})
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    error = classify_http_error(exc, record.artifact_id, url)
                    await self._rollback(client, record, uploaded, error)
                    raise error from exc
                uploaded.append(url)

        self._logger.info(
            "maven_publication_uploaded",
            directory=directory,
            files=len(uploaded),
        )
        return uploaded

    async def _rollback(
        self,
        client: httpx.AsyncClient,
        record: PublishRecord,
        uploaded: list[str],
        cause: PublishError,
    ) -> None:
        if not uploaded:
            return

        self._logger.warning(
            "maven_publication_rolling_back",
            artifact_id=record.artifact_id,
            uploaded=len(uploaded),
            cause=cause.error_code,
        )
        leftovers: list[str] = []
        for url in reversed(uploaded):
            try:
                response = await client.delete(url)
                if response.status_code not in (200, 202, 204, 404):
                    leftovers.append(url)
            except httpx.HTTPError:
                leftovers.append(url)

        if leftovers:
            raise PartialPublishFailure(
                message=f"Rollback of {record.artifact_id} left {len(leftovers)} files behind",
                module=record.artifact_id,
                error_code="ROLLBACK_FAILED",
                details={"leftovers": leftovers, "cause": cause.to_dict()},
            )
