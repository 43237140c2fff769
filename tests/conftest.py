"""Pytest configuration and fixtures."""

import pytest

from depwatch.errors import RegistryQueryFailed
from depwatch.models import DependencyRecord, ManifestFile


class FakeRegistryClient:
    """Registry client answering from canned records per dependency group."""

    def __init__(self, records=None, failures=None):
        self.records = records or {}
        self.failures = failures or {}
        self.calls = []

    async def query(self, manifest, options):
        self.calls.append(options)
        group = options.group
        if group in self.failures:
            raise self.failures[group]
        declared = manifest.group(group)
        return {
            name: record
            for name, record in self.records.get(group, {}).items()
            if name in declared and name not in options.ignore
        }


@pytest.fixture
def sample_package_json():
    """Sample package.json content for testing."""
    return """
{
  "name": "test-project",
  "dependencies": {
    "express": "^4.18.0",
    "lodash": "~4.17.21"
  },
  "devDependencies": {
    "jest": "^28.0.0"
  }
}
"""


@pytest.fixture
def sample_records():
    """Registry records matching sample_package_json."""
    return {
        "dependencies": {
            "express": DependencyRecord(required="^4.18.0", stable="5.1.0", latest="5.1.0"),
            "lodash": DependencyRecord(required="~4.17.21", stable="4.17.21", latest="4.17.21"),
        },
        "devDependencies": {
            "jest": DependencyRecord(required="^28.0.0", stable="29.7.0", latest="30.0.0-alpha.6"),
        },
    }


@pytest.fixture
def fake_client(sample_records):
    return FakeRegistryClient(records=sample_records)


@pytest.fixture
def manifest_file(sample_package_json):
    return ManifestFile(path="package.json", contents=sample_package_json.encode("utf-8"))


@pytest.fixture
def not_found_error():
    return RegistryQueryFailed(RegistryQueryFailed.NOT_FOUND, "left-pad", "Package not found")


@pytest.fixture
def temp_manifest_file(tmp_path, sample_package_json):
    """Create a temporary package.json for testing."""
    manifest = tmp_path / "package.json"
    manifest.write_text(sample_package_json)
    return manifest
