"""Tests for the native toolchain driver (subprocess calls are faked)."""

import subprocess
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from bootplan.errors import ToolchainError
from bootplan.flags import CapabilityFlags
from bootplan.plan import emit_plan
from bootplan.resolver import resolve
from bootplan.toolchain import Toolchain


def _plan(**flags: bool):
    return emit_plan(resolve(CapabilityFlags(**flags)))


class _FakeRun:
    """Records every command; fails any command containing *fail_on*."""

    def __init__(self, fail_on: str | None = None, returncode: int = 1) -> None:
        self.calls: list[tuple[list[str], str]] = []
        self.fail_on = fail_on
        self.returncode = returncode

    def __call__(self, cmd: list[str], **kwargs: Any) -> SimpleNamespace:
        self.calls.append((list(cmd), kwargs["cwd"]))
        if self.fail_on is not None and self.fail_on in cmd:
            return SimpleNamespace(returncode=self.returncode, stdout=b"", stderr=b"boom: error")
        return SimpleNamespace(returncode=0, stdout=b"", stderr=b"")


class TestCommands:
    def test_compile_command_layout(self, tmp_path: Path) -> None:
        tc = Toolchain(out_dir=tmp_path, cc="ccache gcc")
        plan = _plan()
        obj = tc.object_path("csupport/run.c")
        cmd = tc.compile_command(plan, "csupport/run.c", obj)
        assert cmd[:2] == ["ccache", "gcc"]
        assert cmd[2:6] == ["-g", "-Wall", "-Werror", "-std=c99"]
        assert "-D__BOOTSIM__" in cmd
        assert "-Icsupport" in cmd
        assert cmd[-4:] == ["-c", "csupport/run.c", "-o", str(obj)]

    def test_object_names_do_not_collide(self, tmp_path: Path) -> None:
        tc = Toolchain(out_dir=tmp_path)
        a = tc.object_path("mbedtls/library/sha256.c")
        b = tc.object_path("../../ext/tinycrypt/lib/source/sha256.c")
        assert a != b
        assert a.name.endswith("-sha256.o")
        assert a == tc.object_path("mbedtls/library/sha256.c")

    def test_out_dir_made_absolute(self) -> None:
        tc = Toolchain(out_dir=Path("relative/out"))
        assert tc.out_dir.is_absolute()


class TestBuild:
    def test_compiles_every_source_then_archives(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = _FakeRun()
        monkeypatch.setattr(subprocess, "run", fake)
        plan = _plan(sig_ecdsa_p256=True)
        tc = Toolchain(out_dir=tmp_path / "out")
        seen: list[str] = []

        lib = tc.build(plan, tmp_path, "libbootutil.a", on_compile=seen.append)

        assert lib == tmp_path / "out" / "libbootutil.a"
        assert seen == list(plan.sources)
        compile_calls = fake.calls[:-1]
        assert len(compile_calls) == len(plan.sources)
        assert all(cwd == str(tmp_path) for _, cwd in compile_calls)
        ar_cmd, _ = fake.calls[-1]
        assert ar_cmd[:3] == ["ar", "crs", str(lib)]
        assert len(ar_cmd) == 3 + len(plan.sources)

    def test_compile_failure_stops_build(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        fake = _FakeRun(fail_on="csupport/keys.c")
        monkeypatch.setattr(subprocess, "run", fake)
        tc = Toolchain(out_dir=tmp_path)
        with pytest.raises(ToolchainError) as exc_info:
            tc.build(_plan(sig_ecdsa_p256=True), tmp_path, "lib.a")
        assert "boom: error" in str(exc_info.value)
        assert "exit 1" in str(exc_info.value)
        assert not any(cmd[0] == "ar" for cmd, _ in fake.calls)

    def test_missing_compiler(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def _raise(cmd: list[str], **kwargs: Any) -> None:
            raise FileNotFoundError(2, "No such file", cmd[0])

        monkeypatch.setattr(subprocess, "run", _raise)
        tc = Toolchain(out_dir=tmp_path, cc="no-such-cc")
        with pytest.raises(ToolchainError) as exc_info:
            tc.compile(_plan(), tmp_path)
        assert "no-such-cc" in str(exc_info.value)
        assert exc_info.value.hint is not None

    def test_timeout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def _raise(cmd: list[str], **kwargs: Any) -> None:
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", _raise)
        tc = Toolchain(out_dir=tmp_path, timeout=5)
        with pytest.raises(ToolchainError, match="timed out after 5s"):
            tc.compile(_plan(), tmp_path)

    def test_archive_replaces_existing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(subprocess, "run", _FakeRun())
        old = tmp_path / "lib.a"
        old.write_bytes(b"stale")
        Toolchain(out_dir=tmp_path).archive([tmp_path / "a.o"], "lib.a")
        assert not old.exists()

    def test_archive_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(subprocess, "run", _FakeRun(fail_on="crs", returncode=2))
        with pytest.raises(ToolchainError, match="Archiver failed"):
            Toolchain(out_dir=tmp_path).archive([tmp_path / "a.o"], "lib.a")
