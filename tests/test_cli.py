from pathlib import Path

import pytest

from dav1d_sys import cli


def test_resolve_prints_variant(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["resolve", "aarch64", "ios"]) == 0
    assert capsys.readouterr().out.strip() == "ios-device-arm"


def test_resolve_unknown_target_prints_none(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["resolve", "riscv64", "linux"]) == 0
    assert capsys.readouterr().out.strip() == "none"


def test_pipeline_errors_exit_nonzero(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("OUT_DIR", str(tmp_path))
    monkeypatch.setenv("SYSTEM_DEPS_DAV1D_BUILD_INTERNAL", "bogus")

    assert cli.main(["build"]) == 1
    assert "E_VALIDATION" in capsys.readouterr().err
