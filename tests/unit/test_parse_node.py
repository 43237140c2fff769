"""Tests for package.json parsing."""

import io

import pytest

from depwatch.errors import EmptyInput, InvalidManifest, StreamingUnsupported
from depwatch.models import ManifestFile
from depwatch.parse_node import parse_file, parse_package_json


class TestNodeParser:
    """Test package.json parsing."""

    def test_parse_manifest_with_dependencies(self, sample_package_json):
        """Should expose dependency groups of the document."""
        manifest = parse_package_json(sample_package_json.encode("utf-8"))

        assert manifest.path == "package.json"
        assert manifest.data["name"] == "test-project"
        assert manifest.dependencies == {"express": "^4.18.0", "lodash": "~4.17.21"}
        assert manifest.dev_dependencies == {"jest": "^28.0.0"}
        assert manifest.optional_dependencies == {}

    def test_parse_manifest_without_groups(self):
        """Absent groups should read as empty mappings."""
        manifest = parse_package_json(b'{"name":"x"}')

        assert manifest.data == {"name": "x"}
        assert manifest.dependencies == {}
        assert manifest.dev_dependencies == {}
        assert manifest.optional_dependencies == {}

    def test_parse_accepts_text(self):
        """Should accept already decoded content."""
        manifest = parse_package_json('{"dependencies": {"chalk": "^5.0.0"}}')
        assert manifest.dependencies == {"chalk": "^5.0.0"}

    @pytest.mark.parametrize("content", [None, b"", ""])
    def test_parse_none_is_empty_input(self, content):
        with pytest.raises(EmptyInput) as exc_info:
            parse_package_json(content, "app/package.json")
        assert "Empty manifest: app/package.json" in str(exc_info.value)

    def test_parse_stream_is_unsupported(self):
        with pytest.raises(StreamingUnsupported):
            parse_package_json(io.BytesIO(b"{}"))

    def test_parse_invalid_json(self):
        with pytest.raises(InvalidManifest) as exc_info:
            parse_package_json(b"FooBar", "package.json")
        assert "Invalid manifest: package.json" in str(exc_info.value)

    @pytest.mark.parametrize("content", [b"[]", b"42", b'"text"', b"null", b"true"])
    def test_parse_non_object_root(self, content):
        """Only a JSON object is a manifest."""
        with pytest.raises(InvalidManifest):
            parse_package_json(content)

    def test_parse_invalid_utf8(self):
        with pytest.raises(InvalidManifest):
            parse_package_json(b'{"name": "\xff"}')

    def test_errors_carry_package_prefix(self):
        with pytest.raises(InvalidManifest) as exc_info:
            parse_package_json(b"FooBar")
        assert str(exc_info.value).startswith("[depwatch]")


class TestParseFile:
    """Test parsing of manifest files."""

    def test_parse_null_file(self):
        with pytest.raises(EmptyInput):
            parse_file(ManifestFile(path="package.json"))

    def test_parse_zero_length_file(self):
        file = ManifestFile(path="package.json", contents=b"")
        assert file.is_null()
        assert not file.is_stream()
        with pytest.raises(EmptyInput):
            parse_file(file)

    def test_parse_stream_file(self):
        file = ManifestFile(path="package.json", contents=io.BytesIO(b"{}"))
        assert file.is_stream()

        with pytest.raises(StreamingUnsupported):
            parse_file(file)

    def test_parse_chunk_iterator_file(self):
        file = ManifestFile(path="package.json", contents=iter([b"{", b"}"]))

        with pytest.raises(StreamingUnsupported):
            parse_file(file)

    def test_parse_buffered_file(self, manifest_file):
        manifest = parse_file(manifest_file)

        assert manifest.path == "package.json"
        assert "express" in manifest.dependencies
