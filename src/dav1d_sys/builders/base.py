"""Typed interfaces for native library builders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from dav1d_sys.models import BuildArtifacts, CrossDescriptor, SourceTree


@dataclass(frozen=True, slots=True)
class BuildSpec:
    name: str
    source: SourceTree
    artifacts: BuildArtifacts
    descriptor: CrossDescriptor | None = None
    options: tuple[str, ...] = ("-Ddefault_library=static",)


class Builder(Protocol):
    def build(self, spec: BuildSpec) -> BuildArtifacts:
        """Configure, compile and install, returning the output locations."""
