"""
Uploaded artifact storage.

Usage:
    from trailsurface.features.artifacts import LocalArtifactStore
"""

from .store import (
    ArtifactStore,
    LocalArtifactStore,
    S3ArtifactStore,
    make_artifact_name,
)

__all__ = [
    "ArtifactStore",
    "LocalArtifactStore",
    "S3ArtifactStore",
    "make_artifact_name",
]
