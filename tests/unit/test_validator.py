"""Tests for manifest validation."""

import json
from pathlib import Path

import pytest

from contextmesh.errors import ValidationError
from contextmesh.manifest import (
    ConnectorManifest,
    ManifestValidator,
    ValidationResult,
    check_semantics,
    find_duplicate_names,
    is_known_repo_host,
    is_strict_version,
    validate_manifest,
)


@pytest.fixture
def validator() -> ManifestValidator:
    """Fresh validator."""
    return ManifestValidator()


class TestValidateManifest:
    """End-to-end validation of manifest files."""

    def test_valid_manifest(self, tmp_path: Path, manifest_data: dict, write_manifest) -> None:
        """Test the minimal manifest validates."""
        manifest = validate_manifest(write_manifest(tmp_path, manifest_data))
        assert isinstance(manifest, ConnectorManifest)
        assert manifest.id == "demo"

    def test_empty_tools(self, tmp_path: Path, manifest_data: dict, write_manifest) -> None:
        """Test an empty tool list fails the semantic phase."""
        manifest_data["tools"] = []
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(write_manifest(tmp_path, manifest_data))
        assert "Connector must define at least one tool" in exc_info.value.message
        assert exc_info.value.exit_code == 3
        assert exc_info.value.details.field == "tools"

    def test_missing_required_order(
        self, tmp_path: Path, manifest_data: dict, write_manifest
    ) -> None:
        """Test missing fields are reported in declaration order."""
        del manifest_data["tools"]
        del manifest_data["id"]
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(write_manifest(tmp_path, manifest_data))
        error = exc_info.value
        assert error.message == "Manifest validation failed: Missing required property: id"
        assert [v.message for v in error.violations] == [
            "Missing required property: id",
            "Missing required property: tools",
        ]
        assert "lowercase" in (error.suggestion or "")

    def test_invalid_id_located(
        self, tmp_path: Path, manifest_data: dict, write_manifest
    ) -> None:
        """Test pattern violations carry a line and suggestion."""
        manifest_data["id"] = "Bad_Id"
        path = write_manifest(tmp_path, manifest_data)
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(path)
        error = exc_info.value
        assert error.message.startswith("Manifest validation failed: Invalid format:")
        assert error.details.field == "id"
        assert error.details.line == 3
        assert "lowercase letters, numbers, and hyphens" in (error.suggestion or "")
        assert "Location: Line 3" in error.format()

    def test_semantic_checks_skipped_on_schema_failure(
        self, tmp_path: Path, manifest_data: dict, write_manifest
    ) -> None:
        """Test duplicates are not reported while the schema fails."""
        manifest_data["tools"] = [
            {"name": "t", "description": "d"},
            {"name": "t", "description": "d"},
        ]
        manifest_data["id"] = "BAD"
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(write_manifest(tmp_path, manifest_data))
        messages = [v.message for v in exc_info.value.violations]
        assert not any("Duplicate" in m for m in messages)

    def test_does_not_modify_file(
        self, tmp_path: Path, manifest_data: dict, write_manifest
    ) -> None:
        """Test validation is a pure read."""
        path = write_manifest(tmp_path, manifest_data)
        before = path.read_text(encoding="utf-8")
        validate_manifest(path)
        assert path.read_text(encoding="utf-8") == before

    def test_repeatable(
        self, tmp_path: Path, manifest_data: dict, write_manifest, validator: ManifestValidator
    ) -> None:
        """Test validating the same input twice gives the same outcome."""
        path = write_manifest(tmp_path, manifest_data)
        assert validate_manifest(path) == validate_manifest(path)

        manifest_data["tools"] = []
        first = validator.check(manifest_data)
        second = validator.check(manifest_data)
        assert not first.valid
        assert first.errors == second.errors
        assert first.warnings == second.warnings

    @pytest.mark.parametrize("name", ["schema", "id", "tools", "_contextmesh"])
    def test_each_missing_required(
        self, tmp_path: Path, manifest_data: dict, write_manifest, name: str
    ) -> None:
        """Test every top-level required field is reported on its own."""
        del manifest_data[name]
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(write_manifest(tmp_path, manifest_data))
        assert exc_info.value.message == (
            f"Manifest validation failed: Missing required property: {name}"
        )
        assert len(exc_info.value.violations) == 1

    @pytest.mark.parametrize("version", ["1.0", "1.0.0.0", "1.a.0", "v1.0.0", "1.0.0\n"])
    def test_rejects_malformed_version(
        self, tmp_path: Path, manifest_data: dict, write_manifest, version: str
    ) -> None:
        """Test versions without exactly three numeric parts are rejected."""
        manifest_data["_contextmesh"]["version"] = version
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(write_manifest(tmp_path, manifest_data))
        assert exc_info.value.details.field == "_contextmesh/version"

    @pytest.mark.parametrize(
        ("section", "key", "value"),
        [
            (None, "id", "demo\n"),
            ("_contextmesh", "tags", ["x\n"]),
            ("_contextmesh", "checksum", "sha256:" + "a" * 64 + "\n"),
        ],
    )
    def test_rejects_trailing_newline(
        self,
        tmp_path: Path,
        manifest_data: dict,
        write_manifest,
        section: str | None,
        key: str,
        value: object,
    ) -> None:
        """Test anchored patterns do not accept a trailing newline."""
        target = manifest_data[section] if section else manifest_data
        target[key] = value
        with pytest.raises(ValidationError) as exc_info:
            validate_manifest(write_manifest(tmp_path, manifest_data))
        assert exc_info.value.violations[0].keyword == "pattern"


class TestSchemaMessages:
    """Tests for the schema violation message contract."""

    def _first(self, validator: ManifestValidator, data: dict) -> str:
        result = validator.check(data)
        assert not result.valid
        return result.errors[0]

    def test_const(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test wrong schema id lists the allowed value."""
        manifest_data["schema"] = "https://mcp.dev/schema/0.9"
        assert self._first(validator, manifest_data) == (
            "Invalid value. Allowed values: https://mcp.dev/schema/1.0"
        )

    def test_enum(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test unknown language lists allowed values."""
        manifest_data["_contextmesh"]["language"] = "cobol"
        assert self._first(validator, manifest_data) == (
            "Invalid value. Allowed values: typescript, python, rust, go, java"
        )

    def test_min_items(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test empty tags."""
        manifest_data["_contextmesh"]["tags"] = []
        assert self._first(validator, manifest_data) == "Array must have at least 1 items"

    def test_max_items(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test too many tags."""
        manifest_data["_contextmesh"]["tags"] = [f"t{i}" for i in range(11)]
        assert self._first(validator, manifest_data) == "Array must have at most 10 items"

    def test_type(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test wrong JSON type."""
        manifest_data["tools"] = "t"
        assert self._first(validator, manifest_data) == "Expected array but got string"

    def test_email_format(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test author email format."""
        manifest_data["_contextmesh"]["author"] = {"email": "not-an-email"}
        result = validator.check(manifest_data)
        assert result.errors == ["Invalid email format"]
        assert "user@example.com" in (result.violations[0].suggestion or "")

    def test_checksum_pattern(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test malformed checksum."""
        manifest_data["_contextmesh"]["checksum"] = "md5:abc"
        result = validator.check(manifest_data)
        assert result.errors[0].startswith("Invalid format:")
        assert result.violations[0].path == "_contextmesh/checksum"
        assert "sha256" in (result.violations[0].suggestion or "")

    def test_tool_missing_description(
        self, validator: ManifestValidator, manifest_data: dict
    ) -> None:
        """Test nested required properties carry the item path."""
        manifest_data["tools"] = [{"name": "t"}]
        result = validator.check(manifest_data)
        assert result.errors == ["Missing required property: description"]
        assert result.violations[0].path == "tools/0"

    def test_additional_errors_verbose(
        self, validator: ManifestValidator, manifest_data: dict
    ) -> None:
        """Test all violations are kept on the raised error."""
        manifest_data["id"] = "Bad"
        manifest_data["_contextmesh"]["tags"] = []
        raw = json.dumps(manifest_data, indent=2)
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_or_raise(manifest_data, raw)
        error = exc_info.value
        assert len(error.violations) == 2
        assert "Additional validation errors" in error.format(verbose=True)


class TestSemanticChecks:
    """Tests for checks the schema cannot express."""

    def test_duplicate_tools(self, validator: ManifestValidator, manifest_data: dict) -> None:
        """Test duplicate tool names are reported."""
        manifest_data["tools"] = [
            {"name": "a", "description": "x"},
            {"name": "b", "description": "x"},
            {"name": "a", "description": "y"},
        ]
        with pytest.raises(ValidationError) as exc_info:
            validator.validate_or_raise(manifest_data)
        assert exc_info.value.message == "Duplicate tool names found: a"

    def test_tool_names_case_sensitive(
        self, validator: ManifestValidator, manifest_data: dict
    ) -> None:
        """Test names differing in case are distinct."""
        manifest_data["tools"] = [
            {"name": "a", "description": "x"},
            {"name": "A", "description": "x"},
        ]
        assert validator.is_valid(manifest_data)

    def test_version_format(self, manifest_data: dict) -> None:
        """Test non-strict versions fail the semantic check."""
        manifest_data["_contextmesh"]["version"] = "1.0"
        manifest = ConnectorManifest.model_validate(manifest_data)
        result = ValidationResult()
        check_semantics(manifest, result)
        assert result.errors == ["Invalid version format: 1.0"]

    def test_unknown_repo_host_warns(
        self, validator: ManifestValidator, manifest_data: dict
    ) -> None:
        """Test unknown hosts produce a warning, not an error."""
        manifest_data["_contextmesh"]["repo"] = "https://example.com/a/b"
        result = validator.check(manifest_data)
        assert result.valid
        assert result.manifest is not None
        assert result.warnings == [
            "Repository URL should point to a known git hosting service: "
            "https://example.com/a/b"
        ]

    def test_known_repo_host_no_warning(
        self, validator: ManifestValidator, manifest_data: dict
    ) -> None:
        """Test known hosts are accepted silently."""
        assert validator.check(manifest_data).warnings == []


class TestHelpers:
    """Tests for validation helpers."""

    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("1.0.0", True),
            ("10.20.30", True),
            ("1.0", False),
            ("1.0.0.0", False),
            ("1.0.x", False),
            ("1.0.0-beta", False),
            ("", False),
        ],
    )
    def test_is_strict_version(self, version: str, expected: bool) -> None:
        """Test strict version detection."""
        assert is_strict_version(version) is expected

    @pytest.mark.parametrize(
        ("repo", "expected"),
        [
            ("https://github.com/a/b", True),
            ("https://gitlab.com/a/b", True),
            ("https://bitbucket.org/a/b", True),
            ("https://www.github.com/a/b", True),
            ("https://github.com.evil.io/a/b", False),
            ("https://example.com/a/b", False),
        ],
    )
    def test_is_known_repo_host(self, repo: str, expected: bool) -> None:
        """Test hosting provider matching."""
        assert is_known_repo_host(repo) is expected

    def test_find_duplicate_names(self) -> None:
        """Test duplicates are listed once in order."""
        assert find_duplicate_names(["a", "b", "a", "b", "a", "c"]) == ["a", "b"]
        assert find_duplicate_names(["a", "b"]) == []
