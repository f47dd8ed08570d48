"""Map a target (arch, os) pair onto the cross-compilation variant it needs."""

from __future__ import annotations

from enum import Enum

from dav1d_sys.models import TargetPlatform


class CrossVariant(Enum):
    NONE = "none"
    ANDROID_ARM64 = "android-arm64"
    ANDROID_ARM32 = "android-arm32"
    IOS_SIMULATOR_X86_64 = "ios-simulator-x86_64"
    IOS_DEVICE_ARM = "ios-device-arm"
    WINDOWS_MINGW_X86_64 = "windows-mingw-x86_64"
    WINDOWS_MINGW_X86 = "windows-mingw-x86"

    @property
    def is_ios(self) -> bool:
        return self in (CrossVariant.IOS_SIMULATOR_X86_64, CrossVariant.IOS_DEVICE_ARM)


_EXACT: dict[tuple[str, str], CrossVariant] = {
    ("aarch64", "android"): CrossVariant.ANDROID_ARM64,
    ("arm", "android"): CrossVariant.ANDROID_ARM32,
    ("x86_64", "windows"): CrossVariant.WINDOWS_MINGW_X86_64,
    ("x86", "windows"): CrossVariant.WINDOWS_MINGW_X86,
}


def resolve(arch: str, os: str) -> CrossVariant:
    """Return the cross variant for *arch*/*os*; ``NONE`` means host toolchain."""
    # iOS matches on the OS alone.
    if os == "ios":
        if arch == "x86_64":
            return CrossVariant.IOS_SIMULATOR_X86_64
        return CrossVariant.IOS_DEVICE_ARM
    return _EXACT.get((arch, os), CrossVariant.NONE)


def resolve_target(target: TargetPlatform) -> CrossVariant:
    return resolve(target.arch, target.os)


__all__ = ["CrossVariant", "resolve", "resolve_target"]
