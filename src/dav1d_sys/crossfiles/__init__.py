"""Cross-compilation descriptor generation, one generator per platform variant."""

from __future__ import annotations

from dav1d_sys.models import CrossDescriptor, SourceTree, TargetPlatform
from dav1d_sys.observability import StructuredLogger
from dav1d_sys.platforms import CrossVariant, resolve_target
from dav1d_sys.process import CommandRunner, SubprocessRunner

from .base import DescriptorRequest, Generator
from .ios import IncompleteVariantWarning, IosToolchain, ios_descriptor
from .static import STATIC_CROSSFILES, static_descriptor

GENERATORS: dict[CrossVariant, Generator] = {
    CrossVariant.ANDROID_ARM64: static_descriptor,
    CrossVariant.ANDROID_ARM32: static_descriptor,
    CrossVariant.IOS_SIMULATOR_X86_64: ios_descriptor,
    CrossVariant.IOS_DEVICE_ARM: ios_descriptor,
    CrossVariant.WINDOWS_MINGW_X86_64: static_descriptor,
    CrossVariant.WINDOWS_MINGW_X86: static_descriptor,
}

KNOWN_INCOMPLETE = frozenset({CrossVariant.IOS_SIMULATOR_X86_64})


def generate_descriptor(
    target: TargetPlatform,
    source: SourceTree,
    *,
    runner: CommandRunner | None = None,
    logger: StructuredLogger | None = None,
) -> CrossDescriptor | None:
    """Return the cross file for *target*, or ``None`` when the host toolchain suffices."""
    variant = resolve_target(target)
    if variant is CrossVariant.NONE:
        return None
    request = DescriptorRequest(
        variant=variant,
        target=target,
        source=source,
        runner=runner or SubprocessRunner(),
        logger=logger,
    )
    return GENERATORS[variant](request)


__all__ = [
    "GENERATORS",
    "KNOWN_INCOMPLETE",
    "STATIC_CROSSFILES",
    "DescriptorRequest",
    "IncompleteVariantWarning",
    "IosToolchain",
    "generate_descriptor",
]
