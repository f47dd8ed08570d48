"""Cross files that ship inside the dav1d source tree."""

from __future__ import annotations

from dav1d_sys.crossfiles.base import DescriptorRequest
from dav1d_sys.errors import FilesystemError
from dav1d_sys.models import CrossDescriptor
from dav1d_sys.platforms import CrossVariant

STATIC_CROSSFILES: dict[CrossVariant, str] = {
    CrossVariant.ANDROID_ARM64: "aarch64-android.meson",
    CrossVariant.ANDROID_ARM32: "arm-android.meson",
    CrossVariant.WINDOWS_MINGW_X86_64: "x86_64-w64-mingw32.meson",
    CrossVariant.WINDOWS_MINGW_X86: "i686-w64-mingw32.meson",
}


def static_descriptor(request: DescriptorRequest) -> CrossDescriptor:
    try:
        name = STATIC_CROSSFILES[request.variant]
    except KeyError:
        raise FilesystemError(
            "No checked-in cross file exists for this platform variant.",
            context={"operation": "crossfile", "variant": request.variant.value},
        ) from None
    path = request.source.crossfiles_dir / name
    if not path.is_file():
        raise FilesystemError(
            "Checked-in cross file is missing from the source tree.",
            hint="Delete the source checkout so it is cloned again.",
            context={"operation": "crossfile", "path": str(path)},
        )
    return CrossDescriptor(path=path)
