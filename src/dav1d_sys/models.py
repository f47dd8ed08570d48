"""Core typed dataclasses shared by the pipeline stages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import cbor2


@dataclass(frozen=True, slots=True)
class TargetPlatform:
    arch: str
    os: str

    def __str__(self) -> str:
        return f"{self.arch}-{self.os}"


@dataclass(frozen=True, slots=True)
class SourceTree:
    path: Path
    has_vcs_metadata: bool

    @classmethod
    def at(cls, path: str | Path) -> SourceTree:
        root = Path(path)
        return cls(path=root, has_vcs_metadata=(root / ".git").exists())

    @property
    def crossfiles_dir(self) -> Path:
        return self.path / "package" / "crossfiles"


@dataclass(frozen=True, slots=True)
class CrossDescriptor:
    """A meson machine file handed to ``meson setup --cross-file``.

    ``content`` is ``None`` for descriptors shipped inside the source tree and
    holds the rendered text for descriptors generated at run time.
    """

    path: Path
    content: str | None = None

    @property
    def flag(self) -> str:
        return f"--cross-file={self.path}"


@dataclass(frozen=True, slots=True)
class BuildArtifacts:
    build_path: Path
    release_path: Path

    @classmethod
    def under(cls, source: Path) -> BuildArtifacts:
        return cls(build_path=source / "build", release_path=source / "release")

    @property
    def pkg_config_dir(self) -> Path:
        return self.build_path / "meson-private"


@dataclass(frozen=True, slots=True)
class LibraryMetadata:
    name: str
    version: str
    include_paths: tuple[Path, ...] = ()
    link_flags: tuple[str, ...] = ()
    defines: tuple[str, ...] = ()
    schema_version: int = 1

    @property
    def link_paths(self) -> tuple[Path, ...]:
        return tuple(Path(flag[2:]) for flag in self.link_flags if flag.startswith("-L"))

    @property
    def libs(self) -> tuple[str, ...]:
        return tuple(flag[2:] for flag in self.link_flags if flag.startswith("-l"))

    def to_json(self, path: str | Path | None = None) -> str:
        payload = self._payload()
        encoded = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        payload = self._payload()
        encoded = cbor2.dumps(payload, canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        # Order of include paths and link flags is significant; keep it.
        return {
            "schema_version": self.schema_version,
            "name": self.name,
            "version": self.version,
            "include_paths": [str(path) for path in self.include_paths],
            "link_flags": list(self.link_flags),
            "defines": list(self.defines),
        }


__all__ = [
    "BuildArtifacts",
    "CrossDescriptor",
    "LibraryMetadata",
    "SourceTree",
    "TargetPlatform",
]
