"""Tests for runtime request validation."""

import pytest
from pydantic import ValidationError

from jlink_online.builds.schema import RuntimeRequest, guess_endian, split_list


class TestRuntimeRequest:
    """Tests for RuntimeRequest model."""

    def test_defaults(self):
        request = RuntimeRequest(arch="x64", os="linux", version="11")

        assert request.platform == "linux"
        assert request.implementation == "hotspot"
        assert request.endian == "little"
        assert request.modules == ["java.base"]
        assert request.artifacts == []

    def test_populate_by_field_name(self):
        request = RuntimeRequest(arch="x64", platform="windows", version="11")
        assert request.platform == "windows"

    @pytest.mark.parametrize("arch", ["ppc64", "s390x"])
    def test_big_endian_guess(self, arch):
        """Big-endian architectures should default to big."""
        request = RuntimeRequest(arch=arch, os="aix", version="11")
        assert request.endian == "big"

    def test_explicit_endian(self):
        request = RuntimeRequest(arch="ppc64", os="aix", version="11", endian="little")
        assert request.endian == "little"

    @pytest.mark.parametrize(
        "fields",
        [
            {"arch": "a"},
            {"os": "a"},
            {"implementation": "graal"},
            {"endian": "middle"},
            {"modules": ["java.base", "bad module"]},
            {"modules": [""]},
            {"artifacts": ["org.slf4j:slf4j-api"]},
        ],
    )
    def test_invalid_fields(self, fields):
        data = {"arch": "x64", "os": "linux", "version": "11", **fields}
        with pytest.raises(ValidationError):
            RuntimeRequest(**data)

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            RuntimeRequest(arch="x64", os="linux", version="11", unknown=True)

    def test_empty_modules_default_to_java_base(self):
        request = RuntimeRequest(arch="x64", os="linux", version="11", modules=[])
        assert request.modules == ["java.base"]

    def test_artifacts(self):
        request = RuntimeRequest(
            arch="x64",
            os="linux",
            version="11",
            artifacts=["org.slf4j:slf4j-api:1.7.30"],
        )
        assert request.artifacts == ["org.slf4j:slf4j-api:1.7.30"]


class TestHelpers:
    """Tests for schema helpers."""

    def test_guess_endian(self):
        assert guess_endian("x64") == "little"
        assert guess_endian("s390x") == "big"

    def test_split_list(self):
        assert split_list("a, b,,c") == ["a", "b", "c"]
        assert split_list(None) == []
        assert split_list("") == []
