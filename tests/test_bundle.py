"""
Tests for bundle discovery: artifact classification, checksums, VERSION.txt.
"""

from __future__ import annotations

import hashlib

import pytest

from smart_installer.errors import BundleIOError
from smart_installer.lib.bundle import Bundle
from smart_installer.models import InstallStrategy


class TestBundleLoad:
    def test_classifies_artifacts_by_extension(self, make_bundle):
        root = make_bundle(
            {"app_1.0_amd64.deb": b"d", "app-1.0.x86_64.rpm": b"r", "App-x86_64.AppImage": b"a", "notes.txt": b"n"}
        )
        bundle = Bundle.load(root)
        kinds = {a.name: a.strategy for a in bundle.artifacts}
        assert kinds == {
            "app_1.0_amd64.deb": InstallStrategy.DEB,
            "app-1.0.x86_64.rpm": InstallStrategy.RPM,
            "App-x86_64.AppImage": InstallStrategy.APPIMAGE,
        }

    def test_attaches_expected_checksums(self, make_bundle):
        root = make_bundle({"app.deb": b"deb-bytes", "app.appimage": b"x"}, skip_checksums=["app.appimage"])
        by_name = {a.name: a for a in Bundle.load(root).artifacts}
        assert by_name["app.deb"].expected_checksum == hashlib.sha256(b"deb-bytes").hexdigest()
        assert by_name["app.appimage"].expected_checksum is None

    def test_reads_version(self, make_bundle):
        root = make_bundle({"app.deb": b"d"}, version="2.3.1")
        assert Bundle.load(root).version == "2.3.1"

    def test_undecodable_version_is_ignored(self, make_bundle):
        root = make_bundle({"app.deb": b"d"})
        (root / "VERSION.txt").write_bytes(b"\xff\xfe\x00")
        assert Bundle.load(root).version is None

    def test_missing_artifacts_dir(self, tmp_path):
        with pytest.raises(BundleIOError):
            Bundle.load(tmp_path)


class TestAvailable:
    def test_one_per_kind(self, make_bundle):
        root = make_bundle({"app.deb": b"d", "app.AppImage": b"a"})
        assert set(Bundle.load(root).available()) == {InstallStrategy.DEB, InstallStrategy.APPIMAGE}

    def test_ambiguous_kind_is_unavailable(self, make_bundle):
        root = make_bundle({"app-a.deb": b"1", "app-b.deb": b"2", "app.rpm": b"r"})
        assert set(Bundle.load(root).available()) == {InstallStrategy.RPM}
