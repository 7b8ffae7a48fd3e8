import os
import subprocess
from pathlib import Path
from typing import Any

import pytest

from nodelayers import BuildContext, BuildPlan, contribute_modules
from nodelayers.errors import DiagnosticError, PackageManagerError
from nodelayers.layers.inprocess import InProcessLayerStore
from nodelayers.observability import StructuredLogger
from nodelayers.package_manager import NpmPackageManager, PackageManagerConfig


def test_install_uses_ci_when_lock_file_present(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    (tmp_path / "package-lock.json").write_text("{}", encoding="utf-8")
    calls = _patch_run(monkeypatch)

    NpmPackageManager().install(tmp_path / "layer", tmp_path / "cache", tmp_path)

    assert calls[0]["command"] == [
        "npm",
        "ci",
        "--unsafe-perm",
        "--cache",
        str(tmp_path / "cache"),
    ]
    assert calls[0]["cwd"] == str(tmp_path)


def test_install_without_lock_file_uses_install(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls = _patch_run(monkeypatch)

    NpmPackageManager().install(tmp_path / "layer", tmp_path / "cache", tmp_path)

    assert calls[0]["command"][:2] == ["npm", "install"]


def test_rebuild_passes_cache(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_run(monkeypatch)

    NpmPackageManager().rebuild(tmp_path / "cache", tmp_path)

    assert calls[0]["command"] == ["npm", "rebuild", "--cache", str(tmp_path / "cache")]


def test_nonzero_exit_raises_package_manager_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _patch_run(monkeypatch, returncode=1, stderr="ERR! network timeout")

    with pytest.raises(PackageManagerError) as excinfo:
        NpmPackageManager().install(tmp_path / "layer", tmp_path / "cache", tmp_path)

    assert excinfo.value.context["returncode"] == "1"
    assert excinfo.value.context["stderr"] == "ERR! network timeout"
    assert excinfo.value.context["layer_root"] == str(tmp_path / "layer")


def test_missing_tool_raises_package_manager_error(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_run(*args: Any, **kwargs: Any) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError("npm")

    monkeypatch.setattr("nodelayers.package_manager.npm.subprocess.run", fake_run)

    with pytest.raises(PackageManagerError) as excinfo:
        NpmPackageManager().rebuild(tmp_path / "cache", tmp_path)

    assert excinfo.value.hint is not None


def test_unmet_dependencies_are_logged_not_raised(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    logger = StructuredLogger()
    _patch_run(
        monkeypatch,
        returncode=1,
        stdout="x@1.0.0 /app\n└── UNMET DEPENDENCY express@^4.0.0\n",
        stderr="npm ERR! missing: express@^4.0.0, required by x@1.0.0\n",
    )

    NpmPackageManager(logger=logger).warn_unmet_dependencies(tmp_path)

    assert logger.messages(level="warning") == [
        "└── UNMET DEPENDENCY express@^4.0.0",
        "npm ERR! missing: express@^4.0.0, required by x@1.0.0",
    ]


def test_unmet_dependency_check_that_cannot_run_is_fatal(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_run(*args: Any, **kwargs: Any) -> subprocess.CompletedProcess[str]:
        raise PermissionError("npm")

    monkeypatch.setattr("nodelayers.package_manager.npm.subprocess.run", fake_run)

    with pytest.raises(DiagnosticError):
        NpmPackageManager().warn_unmet_dependencies(tmp_path)


def test_verbose_config_sets_node_verbose_for_subprocess_only(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("NODE_VERBOSE", raising=False)
    calls = _patch_run(monkeypatch)
    manager = NpmPackageManager(config=PackageManagerConfig(verbose=True, env={"CI": "true"}))

    manager.warn_unmet_dependencies(tmp_path)

    assert calls[0]["env"]["NODE_VERBOSE"] == "true"
    assert calls[0]["env"]["CI"] == "true"
    assert "NODE_VERBOSE" not in os.environ


@pytest.mark.parametrize(
    ("value", "expected"),
    [("true", True), ("1", True), ("false", False), ("", False)],
)
def test_config_from_environ(value: str, expected: bool) -> None:
    config = PackageManagerConfig.from_environ({"NODE_VERBOSE": value})

    assert config.verbose is expected
    assert config.tool == "npm"


def _patch_run(
    monkeypatch: pytest.MonkeyPatch,
    *,
    returncode: int = 0,
    stdout: str = "",
    stderr: str = "",
) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        calls.append({"command": command, **kwargs})
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)

    monkeypatch.setattr("nodelayers.package_manager.npm.subprocess.run", fake_run)
    return calls


def test_unmet_dependency_check_runs_verbose_by_default(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("NODE_VERBOSE", raising=False)
    calls = _patch_run(monkeypatch)
    manager = NpmPackageManager()

    manager.install(tmp_path / "layer", tmp_path / "cache", tmp_path)
    manager.warn_unmet_dependencies(tmp_path)

    assert "NODE_VERBOSE" not in calls[0]["env"]
    assert calls[1]["command"] == ["npm", "ls", "--depth=0"]
    assert calls[1]["env"]["NODE_VERBOSE"] == "true"
    assert manager.config.verbose is False


def test_contribution_runs_unmet_check_with_node_verbose(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.delenv("NODE_VERBOSE", raising=False)
    calls = _patch_run(monkeypatch)
    app_root = tmp_path / "app"
    app_root.mkdir()
    logger = StructuredLogger()
    context = BuildContext(
        application_root=app_root,
        plan=BuildPlan().add("node_modules", launch=True),
        layers=InProcessLayerStore(root=tmp_path / "layers", logger=logger),
        logger=logger,
    )

    report = contribute_modules(context, NpmPackageManager(logger=logger))

    assert report is not None
    ls_calls = [call for call in calls if call["command"][1] == "ls"]
    assert len(ls_calls) == 1
    assert ls_calls[0]["env"]["NODE_VERBOSE"] == "true"
