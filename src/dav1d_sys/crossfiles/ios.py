"""Run-time generated cross files for iOS device and simulator builds.

Compiler and SDK locations are only known after asking ``xcrun``, so the
machine file is rendered on every run and written under a name that embeds a
hash of its content. An unchanged toolchain maps to the same file, which is
left untouched; a new SDK or compiler produces a new file name.
"""

from __future__ import annotations

import textwrap
import warnings
from dataclasses import dataclass

from dav1d_sys.crossfiles.base import DescriptorRequest
from dav1d_sys.crossfiles.render import array, hashed_name, quote, write_if_changed
from dav1d_sys.errors import ProbeError
from dav1d_sys.models import CrossDescriptor
from dav1d_sys.platforms import CrossVariant
from dav1d_sys.process import CommandRunner

IOS_VERSION_MIN = "9.0"

SDK_SIMULATOR = "iphonesimulator"
SDK_DEVICE = "iphoneos"


class IncompleteVariantWarning(UserWarning):
    """Warning raised when generating a cross file for a known-incomplete variant."""


@dataclass(frozen=True, slots=True)
class IosToolchain:
    sdk: str
    cc: str
    cxx: str
    ar: str
    strip: str
    sysroot: str
    platform_path: str


def sdk_for(arch: str) -> str:
    return SDK_SIMULATOR if arch == "x86_64" else SDK_DEVICE


def ios_cpu(arch: str) -> str:
    return "arm64" if arch == "aarch64" else arch


def probe_toolchain(sdk: str, runner: CommandRunner) -> IosToolchain:
    """Ask ``xcrun`` for each tool and SDK path, one invocation per item."""
    return IosToolchain(
        sdk=sdk,
        cc=_xcrun(runner, sdk, "--find", "clang"),
        cxx=_xcrun(runner, sdk, "--find", "clang++"),
        ar=_xcrun(runner, sdk, "--find", "ar"),
        strip=_xcrun(runner, sdk, "--find", "strip"),
        sysroot=_xcrun(runner, sdk, "--show-sdk-path"),
        platform_path=_xcrun(runner, sdk, "--show-sdk-platform-path"),
    )


def render_device(toolchain: IosToolchain, arch: str) -> str:
    cpu = ios_cpu(arch)
    sysroot = toolchain.sysroot
    compile_args = array(
        [
            f"-mios-version-min={IOS_VERSION_MIN}",
            "-arch",
            cpu,
            "-isysroot",
            sysroot,
            "-Werror=partial-availability",
            "-fno-stack-check",
        ]
    )
    link_args = array(
        [
            f"-Wl,-ios_version_min,{IOS_VERSION_MIN}",
            f"-mios-version-min={IOS_VERSION_MIN}",
            "-arch",
            cpu,
            f"-L{sysroot}/usr/lib/",
        ]
    )
    return _DEVICE_TEMPLATE.format(
        cc=quote(toolchain.cc),
        cxx=quote(toolchain.cxx),
        ar=quote(toolchain.ar),
        strip=quote(toolchain.strip),
        root=quote(f"{toolchain.platform_path}/Developer"),
        compile_args=compile_args,
        link_args=link_args,
        cpu=quote(cpu),
    )


def render_simulator(toolchain: IosToolchain, arch: str) -> str:
    # Known incomplete: the probed toolchain is not used here yet and the
    # properties duplicate the device file. Kept as-is until upstream settles
    # on a working simulator setup.
    del toolchain, arch
    return _SIMULATOR_TEMPLATE


def ios_descriptor(request: DescriptorRequest) -> CrossDescriptor:
    arch = request.target.arch
    sdk = sdk_for(arch)
    toolchain = probe_toolchain(sdk, request.runner)

    if request.variant is CrossVariant.IOS_SIMULATOR_X86_64:
        warnings.warn(
            "The x86_64 iOS simulator cross file is known to be incomplete.",
            IncompleteVariantWarning,
            stacklevel=2,
        )
        content = render_simulator(toolchain, arch)
    else:
        content = render_device(toolchain, arch)

    path = request.source.crossfiles_dir / hashed_name(content, stem=f"{arch}-ios")
    written = write_if_changed(path, content)
    if request.logger is not None:
        request.logger.log(
            operation="crossfile",
            stage="crossfile",
            message="Wrote iOS cross file." if written else "Reusing iOS cross file.",
            extra={"path": str(path), "sdk": sdk, "variant": request.variant.value},
        )
    return CrossDescriptor(path=path, content=content)


def _xcrun(runner: CommandRunner, sdk: str, *query: str) -> str:
    argv = ["xcrun", "--sdk", sdk, *query]
    output = runner.run(argv).strip()
    lines = output.splitlines()
    if not lines or not lines[-1].strip():
        raise ProbeError(
            "Toolchain query returned no path.",
            argv=argv,
            hint="Check that Xcode and the requested SDK are installed (`xcode-select -p`).",
            context={"operation": "probe_toolchain", "sdk": sdk},
        )
    return lines[-1].strip()


_DEVICE_TEMPLATE = textwrap.dedent(
    """\
    [binaries]
    c = {cc}
    cpp = {cxx}
    ar = {ar}
    strip = {strip}
    pkgconfig = 'pkg-config'

    [built-in options]
    root = {root}
    b_bitcode = true
    c_args = {compile_args}
    c_link_args = {link_args}
    cpp_args = {compile_args}
    cpp_link_args = {link_args}

    [properties]
    has_function_printf = true
    has_function_hfkerhisadf = false
    needs_exe_wrapper = true

    [host_machine]
    system = 'darwin'
    cpu_family = 'arm'
    endian = 'little'
    cpu = {cpu}
    """
)

_SIMULATOR_TEMPLATE = textwrap.dedent(
    """\
    [binaries]
    c = 'clang'
    cpp = 'clang++'
    ar = 'ar'
    strip = 'strip'
    pkgconfig = 'pkg-config'

    [built-in options]
    # b_bitcode = true
    c_args = ['-arch', 'x86_64']
    c_link_args = ['-arch', 'x86_64']
    cpp_args = ['-arch', 'x86_64']
    cpp_link_args = ['-arch', 'x86_64']

    [properties]
    has_function_printf = true
    has_function_hfkerhisadf = false
    needs_exe_wrapper = true

    [host_machine]
    system = 'darwin'
    cpu_family = 'x86_64'
    endian = 'little'
    cpu = 'x86_64'
    """
)
