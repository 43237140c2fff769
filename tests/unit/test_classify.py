"""Tests for dependency classification."""

import asyncio

import pytest

from depwatch.classify import DependencyClassifier
from depwatch.config import QueryOptions
from depwatch.errors import ClassificationFailed, RegistryQueryFailed
from depwatch.models import DEPENDENCY_GROUPS, DependencyRecord, Manifest, Mode
from depwatch.parse_node import parse_package_json

from conftest import FakeRegistryClient


class TestDependencyClassifier:
    """Test classification of the three dependency groups."""

    @pytest.mark.asyncio
    async def test_empty_manifest_has_all_groups(self, fake_client):
        classifier = DependencyClassifier(fake_client)

        report = await classifier.classify(Manifest(path="package.json", data={}))

        assert report == {group: {} for group in DEPENDENCY_GROUPS}

    @pytest.mark.asyncio
    async def test_outdated_only(self, fake_client, sample_package_json):
        classifier = DependencyClassifier(fake_client)
        manifest = parse_package_json(sample_package_json)

        report = await classifier.classify(manifest, Mode.OUTDATED_ONLY)

        assert list(report["dependencies"]) == ["express"]
        assert list(report["devDependencies"]) == ["jest"]
        assert report["optionalDependencies"] == {}

    @pytest.mark.asyncio
    async def test_all_mode_keeps_current_dependencies(self, fake_client, sample_package_json):
        classifier = DependencyClassifier(fake_client)
        manifest = parse_package_json(sample_package_json)

        report = await classifier.get_dependencies(manifest)

        assert set(report["dependencies"]) == {"express", "lodash"}
        assert report["optionalDependencies"] == {}

    @pytest.mark.asyncio
    async def test_unstable_target(self, sample_package_json):
        client = FakeRegistryClient(
            records={
                "devDependencies": {
                    "jest": DependencyRecord(required="^29.0.0", stable="29.7.0", latest="30.0.0-alpha.6"),
                }
            }
        )
        manifest = parse_package_json('{"devDependencies": {"jest": "^29.0.0"}}')

        stable_report = await DependencyClassifier(client).get_updated_dependencies(manifest)
        unstable_report = await DependencyClassifier(client, QueryOptions(stable=False)).get_updated_dependencies(manifest)

        assert stable_report["devDependencies"] == {}
        assert list(unstable_report["devDependencies"]) == ["jest"]

    @pytest.mark.asyncio
    async def test_issues_one_query_per_group(self, fake_client, sample_package_json):
        classifier = DependencyClassifier(fake_client, QueryOptions(error_404=True))

        await classifier.classify(parse_package_json(sample_package_json))

        groups = sorted(options.group for options in fake_client.calls)
        assert groups == sorted(DEPENDENCY_GROUPS)
        assert all(options.error_404 for options in fake_client.calls)
        # The base options are never mutated
        assert classifier.options.dev is False
        assert classifier.options.optional is False

    @pytest.mark.asyncio
    async def test_ignore_list_removes_packages(self, sample_records, sample_package_json):
        class LeakyClient(FakeRegistryClient):
            async def query(self, manifest, options):
                # Answers for ignored packages as well
                return self.records.get(options.group, {})

        classifier = DependencyClassifier(LeakyClient(records=sample_records), QueryOptions(ignore=("express",)))

        report = await classifier.classify(parse_package_json(sample_package_json))

        for group in DEPENDENCY_GROUPS:
            assert "express" not in report[group]
        assert "jest" in report["devDependencies"]

    @pytest.mark.asyncio
    async def test_failed_query_aborts_classification(self, sample_records, sample_package_json, not_found_error):
        client = FakeRegistryClient(records=sample_records, failures={"devDependencies": not_found_error})
        classifier = DependencyClassifier(client)

        with pytest.raises(ClassificationFailed) as exc_info:
            await classifier.classify(parse_package_json(sample_package_json))

        assert exc_info.value.cause is not_found_error
        assert "left-pad" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_fail_fast_does_not_wait_for_slow_queries(self, sample_package_json):
        release = asyncio.Event()

        class SlowClient:
            async def query(self, manifest, options):
                if options.dev:
                    raise RegistryQueryFailed(RegistryQueryFailed.TRANSPORT, "jest", "Connection reset")
                await release.wait()
                return {}

        classifier = DependencyClassifier(SlowClient())

        with pytest.raises(ClassificationFailed):
            await asyncio.wait_for(classifier.classify(parse_package_json(sample_package_json)), timeout=5)
        release.set()

    @pytest.mark.asyncio
    async def test_unexpected_client_error_is_wrapped(self, sample_package_json):
        client = FakeRegistryClient(failures={"dependencies": RuntimeError("boom")})

        with pytest.raises(ClassificationFailed) as exc_info:
            await DependencyClassifier(client).classify(parse_package_json(sample_package_json))
        assert isinstance(exc_info.value.cause, RuntimeError)
