"""
Release artifact — download, verify, and install the bridge binary.
"""

from clip_bridge_setup.core.services.artifact.download import (  # noqa: F401
    build_release_url,
    download_release,
    fetch_checksum,
    parse_checksum,
)
from clip_bridge_setup.core.services.artifact.installer import (  # noqa: F401
    BINARY_NAME,
    InstalledArtifact,
    install_artifact,
    place_binary,
)
