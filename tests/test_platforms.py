import itertools

import pytest

from dav1d_sys.models import TargetPlatform
from dav1d_sys.platforms import CrossVariant, resolve, resolve_target


@pytest.mark.parametrize(
    ("arch", "os", "expected"),
    [
        ("aarch64", "android", CrossVariant.ANDROID_ARM64),
        ("arm", "android", CrossVariant.ANDROID_ARM32),
        ("x86_64", "ios", CrossVariant.IOS_SIMULATOR_X86_64),
        ("aarch64", "ios", CrossVariant.IOS_DEVICE_ARM),
        ("arm", "ios", CrossVariant.IOS_DEVICE_ARM),
        ("x86_64", "windows", CrossVariant.WINDOWS_MINGW_X86_64),
        ("x86", "windows", CrossVariant.WINDOWS_MINGW_X86),
        ("x86_64", "linux", CrossVariant.NONE),
        ("aarch64", "macos", CrossVariant.NONE),
        ("x86_64", "android", CrossVariant.NONE),
        ("aarch64", "windows", CrossVariant.NONE),
    ],
)
def test_resolve_known_targets(arch: str, os: str, expected: CrossVariant) -> None:
    assert resolve(arch, os) is expected


def test_resolve_is_total_and_deterministic() -> None:
    arches = ["x86_64", "x86", "aarch64", "arm", "riscv64", "", "AARCH64"]
    oses = ["linux", "android", "ios", "windows", "macos", "", "IOS"]

    for arch, os in itertools.product(arches, oses):
        first = resolve(arch, os)
        assert isinstance(first, CrossVariant)
        assert resolve(arch, os) is first


def test_resolve_matching_is_exact() -> None:
    assert resolve("AARCH64", "android") is CrossVariant.NONE
    assert resolve("aarch64", "Android") is CrossVariant.NONE
    assert resolve("x86_64", "IOS") is CrossVariant.NONE


def test_resolve_target_uses_platform_fields() -> None:
    target = TargetPlatform(arch="aarch64", os="ios")

    assert resolve_target(target) is CrossVariant.IOS_DEVICE_ARM
    assert resolve_target(target).is_ios
    assert not CrossVariant.ANDROID_ARM64.is_ios
