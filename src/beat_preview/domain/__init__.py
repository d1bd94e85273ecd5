"""Domain layer containing pipeline models and the scratch workspace."""

from .models import (
    PREVIEW_POLICY,
    MediaMetadata,
    PreviewArtifact,
    PreviewRequest,
    PublicationResult,
    ScopedCredential,
    SourceReference,
    TranscodePolicy,
)
from .workspace import ScratchWorkspace

__all__ = [
    "PREVIEW_POLICY",
    "MediaMetadata",
    "PreviewArtifact",
    "PreviewRequest",
    "PublicationResult",
    "ScopedCredential",
    "ScratchWorkspace",
    "SourceReference",
    "TranscodePolicy",
]
