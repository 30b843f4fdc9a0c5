"""
buildfleet.integrations.repository.factory - Repository Transport Factory
==========================================================================
"""

from __future__ import annotations

from buildfleet.core.exceptions import ConfigurationError
from buildfleet.integrations.repository.base import RepositoryTransport


def create_repository_transport(layout: str) -> RepositoryTransport:
    """Map ``PublishConfig.layout`` onto a transport.

        - "bundle" → BundleUploadTransport (one multipart POST)
        - "maven"  → MavenLayoutTransport  (PUT per file, rollback on failure)

    Raises:
        ConfigurationError: If the layout is not recognized.
    """
    layout_name = layout.lower()

    if layout_name == "bundle":
        from buildfleet.integrations.repository.bundle import BundleUploadTransport
        return BundleUploadTransport()

    if layout_name == "maven":
        from buildfleet.integrations.repository.maven import MavenLayoutTransport
        return MavenLayoutTransport()

    raise ConfigurationError(
        message=f"Unknown repository layout: '{layout}'. Available layouts: 'bundle', 'maven'.",
        error_code="UNKNOWN_REPOSITORY_LAYOUT",
        details={"layout": layout},
    )
