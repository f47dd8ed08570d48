"""Build dav1d from source and derive what its binding layer needs."""

from .config import BuildConfig
from .errors import (
    CommandError,
    Dav1dSysError,
    ErrorCode,
    FilesystemError,
    MetadataResolutionError,
    ProbeError,
    ValidationError,
)
from .models import (
    BuildArtifacts,
    CrossDescriptor,
    LibraryMetadata,
    SourceTree,
    TargetPlatform,
)
from .pipeline import PipelineResult, build_from_source, probe, run
from .platforms import CrossVariant, resolve

__all__ = [
    "BuildArtifacts",
    "BuildConfig",
    "CommandError",
    "CrossDescriptor",
    "CrossVariant",
    "Dav1dSysError",
    "ErrorCode",
    "FilesystemError",
    "LibraryMetadata",
    "MetadataResolutionError",
    "PipelineResult",
    "ProbeError",
    "SourceTree",
    "TargetPlatform",
    "ValidationError",
    "build_from_source",
    "probe",
    "resolve",
    "run",
]
