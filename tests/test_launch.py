"""
Tests for post-install launching of the GUI or the bundle TUI.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from smart_installer.config import InstallerConfig
from smart_installer.errors import LaunchFailure
from smart_installer.lib.bundle import Bundle
from smart_installer.lib.launch import launch, tui_command
from smart_installer.models import Artifact, InstallStrategy, RunConfig

from .conftest import FakeRunner


@pytest.fixture
def bundle(make_bundle) -> Bundle:
    return Bundle.load(make_bundle({"app.deb": b"d", "App.AppImage": b"a"}))


def _artifact(bundle: Bundle, strategy: InstallStrategy) -> Artifact:
    return bundle.available()[strategy]


def _add_tui(bundle: Bundle) -> Path:
    bundle.tui_dir.mkdir(exist_ok=True)
    script = bundle.tui_dir / "app-tui"
    script.write_text("#!/bin/sh\nexit 0\n")
    script.chmod(0o755)
    return script


class TestTuiCommand:
    def test_first_executable(self, bundle):
        (bundle.tui_dir).mkdir()
        (bundle.tui_dir / "README").write_text("not executable")
        script = _add_tui(bundle)
        assert tui_command(bundle, InstallerConfig()) == [str(script)]

    def test_configured_relative_to_bundle(self, bundle):
        script = _add_tui(bundle)
        settings = InstallerConfig(raw={"launch": {"tui_command": ["tui/app-tui", "--plain"]}})
        assert tui_command(bundle, settings) == [str(script), "--plain"]

    def test_missing_tui(self, bundle):
        with pytest.raises(LaunchFailure):
            tui_command(bundle, InstallerConfig())


class TestLaunch:
    def test_dry_run_spawns_nothing(self, bundle, host):
        runner = FakeRunner()
        launch(
            InstallStrategy.DEB,
            _artifact(bundle, InstallStrategy.DEB),
            RunConfig(dry_run=True),
            runner=runner,
            settings=InstallerConfig(raw={"app_name": "myapp"}),
            bundle=bundle,
        )
        assert runner.spawned == []
        assert runner.calls == []

    def test_gui_spawned_detached(self, bundle, host):
        host.set(tools=["myapp"])
        runner = FakeRunner()
        launch(
            InstallStrategy.DEB,
            _artifact(bundle, InstallStrategy.DEB),
            RunConfig(),
            runner=runner,
            settings=InstallerConfig(raw={"app_name": "myapp"}),
            bundle=bundle,
        )
        assert runner.spawned == [{"argv": ["myapp"], "env": {}}]

    def test_gui_missing_binary(self, bundle, host):
        host.set(tools=[])
        with pytest.raises(LaunchFailure):
            launch(
                InstallStrategy.RPM,
                _artifact(bundle, InstallStrategy.DEB),
                RunConfig(),
                runner=FakeRunner(),
                settings=InstallerConfig(raw={"app_name": "myapp"}),
                bundle=bundle,
            )

    def test_unconfigured_gui_is_skipped(self, bundle, host, caplog):
        host.set(tools=["app"])
        runner = FakeRunner()
        launch(
            InstallStrategy.DEB,
            _artifact(bundle, InstallStrategy.DEB),
            RunConfig(),
            runner=runner,
            settings=InstallerConfig(),
            bundle=bundle,
        )
        assert runner.spawned == [] and runner.calls == []
        assert "No GUI launcher configured" in caplog.text

    def test_appimage_gui_uses_installed_copy(self, bundle, host, tmp_path):
        host.set(fuse=False)
        apps = tmp_path / "apps"
        apps.mkdir()
        installed = apps / "App.AppImage"
        installed.write_bytes(b"a")
        installed.chmod(0o755)
        runner = FakeRunner()
        launch(
            InstallStrategy.APPIMAGE,
            _artifact(bundle, InstallStrategy.APPIMAGE),
            RunConfig(),
            runner=runner,
            settings=InstallerConfig(raw={"appimage": {"install_dir": str(apps)}}),
            bundle=bundle,
        )
        assert runner.spawned == [{"argv": [str(installed)], "env": {"APPIMAGE_EXTRACT_AND_RUN": "1"}}]

    def test_tui_runs_in_foreground(self, bundle, host):
        script = _add_tui(bundle)
        runner = FakeRunner()
        launch(
            InstallStrategy.DEB,
            _artifact(bundle, InstallStrategy.DEB),
            RunConfig(use_tui=True),
            runner=runner,
            settings=InstallerConfig(),
            bundle=bundle,
        )
        assert runner.calls == [{"argv": [str(script)], "timeout": None, "stream": True, "env": {}}]
        assert runner.spawned == []
