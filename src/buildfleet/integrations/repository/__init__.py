"""
buildfleet.integrations.repository - Remote Repository Transports
===================================================================

Usage:
    from buildfleet.integrations.repository import create_repository_transport
"""

from buildfleet.integrations.repository.base import RepositoryTransport, classify_http_error, read_artifact
from buildfleet.integrations.repository.bundle import BundleUploadTransport
from buildfleet.integrations.repository.factory import create_repository_transport
from buildfleet.integrations.repository.maven import MavenLayoutTransport

__all__ = [
    "RepositoryTransport",
    "BundleUploadTransport",
    "MavenLayoutTransport",
    "classify_http_error",
    "read_artifact",
    "create_repository_transport",
]
