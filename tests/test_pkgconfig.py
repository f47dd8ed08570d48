from pathlib import Path

import pytest

from conftest import FakeRunner, write_pc
from dav1d_sys.errors import ErrorCode, MetadataResolutionError
from dav1d_sys.pkgconfig import (
    compare_versions,
    metadata_from_flags,
    parse_constraint,
    parse_pc,
    resolve_library,
    satisfies,
    system_library,
)


def test_resolve_library_returns_include_paths_and_link_flags(tmp_path: Path) -> None:
    release = tmp_path / "release"
    write_pc(tmp_path / "meson-private", prefix=release)

    metadata = resolve_library(tmp_path / "meson-private", "dav1d", "1.0.0")

    assert metadata.name == "dav1d"
    assert metadata.version == "1.0.0"
    assert metadata.include_paths == (release / "include",)
    assert metadata.link_flags == (f"-L{release}/lib", "-ldav1d", "-lpthread", "-ldl", "-lm")
    assert metadata.link_paths == (release / "lib",)
    assert metadata.libs == ("dav1d", "pthread", "dl", "m")


def test_incompatible_version_is_a_metadata_failure(tmp_path: Path) -> None:
    write_pc(tmp_path, prefix=tmp_path / "release")

    with pytest.raises(MetadataResolutionError) as excinfo:
        resolve_library(tmp_path, "dav1d", "99.0.0")

    assert excinfo.value.code == ErrorCode.METADATA.value
    assert excinfo.value.context["found"] == "1.0.0"


def test_missing_library_is_a_metadata_failure(tmp_path: Path) -> None:
    write_pc(tmp_path, prefix=tmp_path / "release")

    with pytest.raises(MetadataResolutionError) as excinfo:
        resolve_library(tmp_path, "libfoo", "1.0.0")

    assert "libfoo" in str(excinfo.value)


def test_parse_pc_expands_variables_and_ignores_comments(tmp_path: Path) -> None:
    pc_path = tmp_path / "x.pc"
    pc_path.write_text(
        "# generated\n"
        "prefix=/opt/x\n"
        "includedir=${prefix}/include  # trailing\n"
        "\n"
        "Name: x\n"
        "CFlags: -I${includedir}/x -I ${prefix}/extra -DX_STATIC -I${includedir}/x\n"
        "Version: 2.1\n",
        encoding="utf-8",
    )

    pc = parse_pc(pc_path)
    metadata = metadata_from_flags("x", pc.version, pc.tokens("Cflags"), pc.tokens("Libs"))

    assert pc.variables["includedir"] == "/opt/x/include"
    assert metadata.include_paths == (Path("/opt/x/include/x"), Path("/opt/x/extra"))
    assert metadata.defines == ("X_STATIC",)
    assert metadata.link_flags == ()


def test_undefined_variable_is_rejected(tmp_path: Path) -> None:
    pc_path = tmp_path / "x.pc"
    pc_path.write_text("Cflags: -I${nowhere}\n", encoding="utf-8")

    with pytest.raises(MetadataResolutionError):
        parse_pc(pc_path)


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        ("1.0.0", "1.0.0", 0),
        ("1.0.0", "1.0", 1),
        ("1.2.0", "1.10.0", -1),
        ("1.0.0", "99.0.0", -1),
        ("1.0a", "1.0", 1),
        ("1.0.1", "1.0a", 1),
    ],
)
def test_compare_versions(left: str, right: str, expected: int) -> None:
    assert compare_versions(left, right) == expected


def test_constraints() -> None:
    assert parse_constraint("1.0.0") == [(">=", "1.0.0")]
    assert parse_constraint(">= 1.0, < 2") == [(">=", "1.0"), ("<", "2")]
    assert parse_constraint("=1.0.0") == [("==", "1.0.0")]
    assert satisfies("1.0.0", "1.0.0")
    assert satisfies("1.4.2", "1.0.0")
    assert not satisfies("1.0.0", "99.0.0")
    assert satisfies("1.4.2", ">= 1.0, < 2")
    assert not satisfies("2.0.0", ">= 1.0, < 2")
    assert not satisfies("1.0.0", "!= 1.0.0")


def test_malformed_constraint_is_rejected() -> None:
    with pytest.raises(MetadataResolutionError):
        parse_constraint(">= 1.0 2.0")


def test_system_library_queries_pkg_config(fake_runner: FakeRunner) -> None:
    fake_runner.on("pkg-config", "--modversion", output="1.3.0\n")
    fake_runner.on("pkg-config", "--cflags", output="-I/usr/include\n")
    fake_runner.on("pkg-config", "--libs", output="-L/usr/lib -ldav1d\n")

    metadata = system_library("dav1d", "1.0.0", runner=fake_runner)

    assert metadata.version == "1.3.0"
    assert metadata.include_paths == (Path("/usr/include"),)
    assert metadata.link_flags == ("-L/usr/lib", "-ldav1d")


def test_system_library_falls_back_to_includedir_for_filtered_cflags(
    fake_runner: FakeRunner,
) -> None:
    fake_runner.on("pkg-config", "--modversion", output="1.4.3\n")
    fake_runner.on("pkg-config", "--cflags", output="\n")
    fake_runner.on("pkg-config", "--libs", output="-ldav1d\n")
    fake_runner.on("pkg-config", "--variable=includedir", output="/usr/include\n")

    metadata = system_library("dav1d", "1.0.0", runner=fake_runner)

    assert metadata.include_paths == (Path("/usr/include"),)
    assert metadata.link_flags == ("-ldav1d",)
    assert fake_runner.calls[-1] == ("pkg-config", "--variable=includedir", "dav1d")


def test_system_library_skips_includedir_query_when_cflags_list_paths(
    fake_runner: FakeRunner,
) -> None:
    fake_runner.on("pkg-config", "--modversion", output="1.3.0\n")
    fake_runner.on("pkg-config", "--cflags", output="-I/opt/dav1d/include\n")

    system_library("dav1d", "1.0.0", runner=fake_runner)

    assert ("pkg-config", "--variable=includedir", "dav1d") not in fake_runner.calls


def test_system_library_version_mismatch_stops_before_flag_queries(
    fake_runner: FakeRunner,
) -> None:
    fake_runner.on("pkg-config", "--modversion", output="0.9.0\n")

    with pytest.raises(MetadataResolutionError):
        system_library("dav1d", "1.0.0", runner=fake_runner)

    assert fake_runner.calls == [("pkg-config", "--modversion", "dav1d")]
