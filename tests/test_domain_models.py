"""test suite for domain models."""
import pytest
import semantic_version
from pydantic import ValidationError
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from nodeswitch.domain.models import (
    CatalogEntry,
    InstallResult,
    InstallStatus,
    RemoveResult,
    RemoveStatus,
    normalize_version,
)


class TestCatalogEntry:
    def test_strips_leading_v(self):
        entry = CatalogEntry(version="v18.0.0", lts=False, files=[])
        assert entry.version == "18.0.0"
        assert entry.semver == semantic_version.Version("18.0.0")

    def test_lts_false_becomes_none(self):
        entry = CatalogEntry(version="v19.0.0", lts=False)
        assert entry.lts is None

    def test_lts_codename_kept(self):
        entry = CatalogEntry(version="v18.12.0", lts="Hydrogen")
        assert entry.lts == "Hydrogen"

    def test_lts_missing_is_none(self):
        assert CatalogEntry(version="1.0.0").lts is None

    def test_lts_true_rejected(self):
        with pytest.raises(ValidationError):
            CatalogEntry(version="v18.0.0", lts=True)

    def test_invalid_version_rejected(self):
        with pytest.raises(ValidationError):
            CatalogEntry(version="v18", lts=False)

    def test_artifacts_parsed_from_file_tags(self):
        entry = CatalogEntry(
            version="v16.0.0",
            files=["linux-x64", "win-x86-zip", "osx-x64-tar", "src", "headers"],
        )
        assert entry.artifacts == {("linux", "x64"), ("win", "x86"), ("osx", "x64")}

    def test_entry_is_immutable(self):
        entry = CatalogEntry(version="v16.0.0")
        with pytest.raises(ValidationError):
            entry.version = "17.0.0"

    def test_parses_index_payload(self):
        payload = {
            "version": "v20.5.1",
            "date": "2023-08-09",
            "files": ["linux-x64"],
            "npm": "9.8.0",
            "lts": False,
            "security": True,
        }
        entry = CatalogEntry.model_validate(payload)
        assert entry.version == "20.5.1"
        assert entry.files == ["linux-x64"]


class TestResults:
    def test_install_result_ok(self):
        assert InstallResult(version="1.0.0", status=InstallStatus.INSTALLED).ok
        assert InstallResult(version="1.0.0", status=InstallStatus.ALREADY_INSTALLED).ok
        assert not InstallResult(version="1.0.0", status=InstallStatus.FAILED, reason="boom").ok

    def test_remove_result_ok(self):
        assert RemoveResult(version="1.0.0", status=RemoveStatus.REMOVED).ok
        assert not RemoveResult(version="1.0.0", status=RemoveStatus.NOT_INSTALLED).ok


def test_normalize_version():
    assert normalize_version(" v16.0.0 ") == "16.0.0"
    assert normalize_version("16.0.0") == "16.0.0"
