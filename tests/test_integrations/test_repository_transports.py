"""
Tests for buildfleet.integrations.repository
==============================================

What's Being Tested:
    - classify_http_error(): timeouts / 5xx retryable, other statuses rejected
    - MavenLayoutTransport: Maven paths, checksums, POM, rollback on failure
    - create_repository_transport(): layout names
"""

import hashlib

import httpx
import pytest
import respx

from buildfleet.core.exceptions import ConfigurationError, NetworkTimeout, PartialPublishFailure
from buildfleet.integrations.repository import (
    BundleUploadTransport,
    MavenLayoutTransport,
    classify_http_error,
    create_repository_transport,
)
from buildfleet.integrations.repository.maven import render_pom, version_directory
from buildfleet.orchestration.aggregator import ArtifactAggregator
from buildfleet.orchestration.publisher import PublishPipeline
from tests.helpers import SNAPSHOT_URL, VERSION


DIRECTORY = f"{SNAPSHOT_URL}/net/codersky/yaml/yaml/{VERSION}"


@pytest.fixture
def record(populated, registry):
    report = ArtifactAggregator(populated).aggregate(registry)
    pipeline = PublishPipeline(populated, MavenLayoutTransport())
    return pipeline.build_record(registry.get("yaml"), report.for_module("yaml"), VERSION)


@pytest.fixture
def repo():
    with respx.mock(assert_all_called=False) as router:
        yield router


# =============================================================================
# Test: Error Classification
# =============================================================================
class TestClassifyHttpError:

    def _status_error(self, status: int) -> httpx.HTTPStatusError:
        request = httpx.Request("PUT", "https://repo/x")
        response = httpx.Response(status, request=request)
        return httpx.HTTPStatusError("bad", request=request, response=response)

    def test_timeout(self) -> None:
        error = classify_http_error(httpx.ReadTimeout("slow"), "yaml", "https://repo/x")
        assert isinstance(error, NetworkTimeout)
        assert error.error_code == "NETWORK_TIMEOUT"

    def test_server_error_is_retryable(self) -> None:
        error = classify_http_error(self._status_error(502), "yaml", "https://repo/x")
        assert isinstance(error, NetworkTimeout)
        assert error.error_code == "NETWORK_ERROR"

    def test_client_error_is_rejection(self) -> None:
        error = classify_http_error(self._status_error(401), "yaml", "https://repo/x")
        assert isinstance(error, PartialPublishFailure)
        assert error.error_code == "PUBLISH_REJECTED"
        assert error.details["status_code"] == 401

    def test_connection_error(self) -> None:
        error = classify_http_error(httpx.ConnectError("refused"), "yaml", "https://repo/x")
        assert error.error_code == "NETWORK_ERROR"


# =============================================================================
# Test: Maven Layout
# =============================================================================
class TestMavenLayoutTransport:

    def test_version_directory(self, record) -> None:
        assert version_directory(SNAPSHOT_URL + "/", record) == DIRECTORY

    def test_pom(self, record) -> None:
        pom = render_pom(record).decode()
        assert "<groupId>net.codersky.yaml</groupId>" in pom
        assert "<artifactId>yaml</artifactId>" in pom
        assert f"<version>{VERSION}</version>" in pom
        assert "<packaging>jar</packaging>" in pom

    async def test_uploads_files_with_checksums(self, record, repo) -> None:
        route = repo.put(url__startswith=DIRECTORY).respond(201)

        async with httpx.AsyncClient() as client:
            uploaded = await MavenLayoutTransport().submit(client, SNAPSHOT_URL, record)

        base = f"{DIRECTORY}/yaml-{VERSION}"
        assert uploaded == [
            f"{base}.jar",
            f"{base}.jar.sha1",
            f"{base}-sources.jar",
            f"{base}-sources.jar.sha1",
            f"{base}.pom",
            f"{base}.pom.sha1",
        ]
        assert route.call_count == 6

        jar_request, jar_sha1_request = route.calls[0].request, route.calls[1].request
        jar_bytes = record.primary.target_path.read_bytes()
        assert jar_request.read() == jar_bytes
        assert jar_sha1_request.read() == hashlib.sha1(jar_bytes).hexdigest().encode()

    async def test_failure_rolls_back_uploaded_files(self, record, repo) -> None:
        base = f"{DIRECTORY}/yaml-{VERSION}"
        repo.put(f"{base}.jar").respond(201)
        repo.put(f"{base}.jar.sha1").respond(201)
        repo.put(f"{base}-sources.jar").respond(400)
        deletes = repo.delete(url__startswith=DIRECTORY).respond(204)

        async with httpx.AsyncClient() as client:
            with pytest.raises(PartialPublishFailure) as exc_info:
                await MavenLayoutTransport().submit(client, SNAPSHOT_URL, record)

        assert exc_info.value.error_code == "PUBLISH_REJECTED"
        deleted = [str(call.request.url) for call in deletes.calls]
        assert deleted == [f"{base}.jar.sha1", f"{base}.jar"]

    async def test_failed_rollback_is_reported(self, record, repo) -> None:
        base = f"{DIRECTORY}/yaml-{VERSION}"
        repo.put(f"{base}.jar").respond(201)
        repo.put(f"{base}.jar.sha1").mock(side_effect=httpx.ReadTimeout)
        repo.delete(url__startswith=DIRECTORY).respond(500)

        async with httpx.AsyncClient() as client:
            with pytest.raises(PartialPublishFailure) as exc_info:
                await MavenLayoutTransport().submit(client, SNAPSHOT_URL, record)

        assert exc_info.value.error_code == "ROLLBACK_FAILED"
        assert exc_info.value.details["leftovers"] == [f"{base}.jar"]
        assert exc_info.value.details["cause"]["error_code"] == "NETWORK_TIMEOUT"

    async def test_first_upload_failure_needs_no_rollback(self, record, repo) -> None:
        repo.put(url__startswith=DIRECTORY).mock(side_effect=httpx.ConnectError)
        deletes = repo.delete(url__startswith=DIRECTORY).respond(204)

        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkTimeout):
                await MavenLayoutTransport().submit(client, SNAPSHOT_URL, record)

        assert deletes.call_count == 0


# =============================================================================
# Test: Factory
# =============================================================================
class TestRepositoryTransportFactory:

    def test_bundle(self) -> None:
        assert isinstance(create_repository_transport("bundle"), BundleUploadTransport)

    def test_maven_case_insensitive(self) -> None:
        assert isinstance(create_repository_transport("Maven"), MavenLayoutTransport)

    def test_unknown_layout(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            create_repository_transport("ftp")
        assert exc_info.value.error_code == "UNKNOWN_REPOSITORY_LAYOUT"
