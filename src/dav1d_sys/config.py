"""Build configuration collected once from the environment."""

from __future__ import annotations

import os
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from dav1d_sys.errors import ValidationError
from dav1d_sys.models import TargetPlatform

BuildInternal = Literal["always", "auto", "never"]

REPO = "https://code.videolan.org/videolan/dav1d.git"
LIBRARY = "dav1d"
DEFAULT_VERSION = "1.0.0"
DEFAULT_OUT_DIR = "build-out"

BUILD_INTERNAL_VAR = "SYSTEM_DEPS_DAV1D_BUILD_INTERNAL"
ALLOW_CROSS_VAR = "PKG_CONFIG_ALLOW_CROSS"

_BUILD_INTERNAL_MODES = ("always", "auto", "never")
_CROSS_PKG_CONFIG_OSES = ("ios", "android")

_HOST_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "armv7l": "arm",
    "armv7": "arm",
    "armv6l": "arm",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
}

_HOST_OS_ALIASES = {
    "darwin": "macos",
    "win32": "windows",
    "cygwin": "windows",
}


@dataclass(frozen=True, slots=True)
class BuildConfig:
    target_arch: str
    target_os: str
    out_dir: Path
    build_internal: BuildInternal = "always"
    allow_cross: bool = False
    repo: str = REPO
    library: str = LIBRARY
    version: str = DEFAULT_VERSION

    def __post_init__(self) -> None:
        if self.build_internal not in _BUILD_INTERNAL_MODES:
            raise ValidationError(
                f"Unsupported build mode `{self.build_internal}`.",
                hint=f"Set {BUILD_INTERNAL_VAR} to one of: {', '.join(_BUILD_INTERNAL_MODES)}.",
                context={"operation": "config", "value": str(self.build_internal)},
            )
        if not self.target_arch or not self.target_os:
            raise ValidationError(
                "Target architecture and operating system must be non-empty.",
                context={"arch": self.target_arch, "os": self.target_os},
            )
        if self.target_os in _CROSS_PKG_CONFIG_OSES and not self.allow_cross:
            object.__setattr__(self, "allow_cross", True)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BuildConfig:
        env = os.environ if environ is None else environ
        target_arch = _first(env, "DAV1D_SYS_TARGET_ARCH", "CARGO_CFG_TARGET_ARCH") or host_arch()
        target_os = _first(env, "DAV1D_SYS_TARGET_OS", "CARGO_CFG_TARGET_OS") or host_os()
        out_dir = _first(env, "DAV1D_SYS_OUT_DIR", "OUT_DIR") or DEFAULT_OUT_DIR
        build_internal = env.get(BUILD_INTERNAL_VAR, "").strip().lower() or "always"
        return cls(
            target_arch=target_arch,
            target_os=target_os,
            out_dir=Path(out_dir).resolve(),
            build_internal=cast(BuildInternal, build_internal),
            allow_cross=_truthy(env.get(ALLOW_CROSS_VAR, "")),
            repo=env.get("DAV1D_SYS_REPO", "").strip() or REPO,
        )

    @property
    def target(self) -> TargetPlatform:
        return TargetPlatform(arch=self.target_arch, os=self.target_os)

    @property
    def is_cross(self) -> bool:
        return (self.target_arch, self.target_os) != (host_arch(), host_os())

    @property
    def source_dir(self) -> Path:
        return self.out_dir / self.library

    def env(self) -> dict[str, str]:
        """Return the overrides exported to child processes."""
        overrides = {BUILD_INTERNAL_VAR: self.build_internal}
        if self.allow_cross:
            overrides[ALLOW_CROSS_VAR] = "1"
        return overrides


def host_arch() -> str:
    machine = platform.machine().lower()
    return _HOST_ARCH_ALIASES.get(machine, machine)


def host_os() -> str:
    for prefix, name in _HOST_OS_ALIASES.items():
        if sys.platform.startswith(prefix):
            return name
    return sys.platform.rstrip("0123456789")


def _first(env: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return ""


def _truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


__all__ = [
    "ALLOW_CROSS_VAR",
    "BUILD_INTERNAL_VAR",
    "BuildConfig",
    "BuildInternal",
    "DEFAULT_VERSION",
    "LIBRARY",
    "REPO",
    "host_arch",
    "host_os",
]
