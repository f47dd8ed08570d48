"""Shared request type for cross-file generators."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from dav1d_sys.models import CrossDescriptor, SourceTree, TargetPlatform
from dav1d_sys.observability import StructuredLogger
from dav1d_sys.platforms import CrossVariant
from dav1d_sys.process import CommandRunner, SubprocessRunner


@dataclass(frozen=True, slots=True)
class DescriptorRequest:
    variant: CrossVariant
    target: TargetPlatform
    source: SourceTree
    runner: CommandRunner = field(default_factory=SubprocessRunner)
    logger: StructuredLogger | None = None


Generator = Callable[[DescriptorRequest], CrossDescriptor]
