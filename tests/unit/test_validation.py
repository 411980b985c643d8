"""Unit tests for the validation module."""

import pytest

from pgstate.core.validation import (
    MAX_IDENTIFIER_BYTES,
    quote_identifier,
    validate_object_name,
    validate_port,
    validate_schema_change,
    validate_sslmode,
    validate_version_string,
)
from pgstate.core.exceptions import ErrorKind, ValidationError


class TestQuoteIdentifier:
    """Tests for SQL identifier quoting."""

    def test_plain_name(self):
        """Plain names are wrapped in double quotes."""
        assert quote_identifier("hstore") == '"hstore"'

    def test_case_preserved(self):
        """Mixed case survives quoting."""
        assert quote_identifier("MyExt") == '"MyExt"'

    def test_embedded_quotes_doubled(self):
        """Embedded double quotes are escaped by doubling."""
        assert quote_identifier('we"ird') == '"we""ird"'
        assert quote_identifier('"') == '""""'

    def test_injection_attempt_stays_one_identifier(self):
        """A name trying to close the identifier stays inside it."""
        quoted = quote_identifier('x"; DROP TABLE users; --')
        assert quoted == '"x""; DROP TABLE users; --"'

    def test_special_characters(self):
        """Dashes, spaces and dots are kept verbatim."""
        assert quote_identifier("uuid-ossp") == '"uuid-ossp"'
        assert quote_identifier("my schema.x") == '"my schema.x"'

    def test_truncates_at_nul(self):
        """Everything from the first NUL byte is dropped."""
        assert quote_identifier("abc\x00def") == '"abc"'

    def test_empty(self):
        """Empty string quotes to an empty identifier."""
        assert quote_identifier("") == '""'


class TestValidateObjectName:
    """Tests for catalog object name validation."""

    def test_valid_names(self):
        """Any printable name up to 63 bytes passes."""
        for name in ["hstore", "uuid-ossp", "Mixed Case", 'we"ird', "_x1"]:
            assert validate_object_name(name, "extension") == name

    def test_empty(self):
        """Empty names fail."""
        with pytest.raises(ValidationError) as exc:
            validate_object_name("", "extension")
        assert "cannot be empty" in str(exc.value)
        assert exc.value.kind is ErrorKind.VALIDATION

    def test_nul_byte(self):
        """NUL bytes fail."""
        with pytest.raises(ValidationError) as exc:
            validate_object_name("ab\x00c", "schema")
        assert "NUL" in str(exc.value)

    def test_max_length(self):
        """Exactly 63 bytes passes, 64 fails."""
        assert validate_object_name("a" * MAX_IDENTIFIER_BYTES)
        with pytest.raises(ValidationError) as exc:
            validate_object_name("a" * (MAX_IDENTIFIER_BYTES + 1))
        assert "exceeds maximum length" in str(exc.value)

    def test_length_counts_bytes(self):
        """Multi-byte characters count by their UTF-8 size."""
        with pytest.raises(ValidationError):
            validate_object_name("é" * 32)  # 64 bytes


class TestValidateSchemaChange:
    """Tests for relocation target validation."""

    def test_valid_schema(self):
        assert validate_schema_change("hstore", "app") == "app"

    def test_empty_schema(self):
        """Moving to an empty schema name fails with a hint."""
        with pytest.raises(ValidationError) as exc:
            validate_schema_change("hstore", "")
        assert "empty schema" in str(exc.value)
        assert exc.value.hint


class TestValidatePort:
    """Tests for port validation."""

    def test_valid_ports(self):
        assert validate_port(5432) == 5432
        assert validate_port(1) == 1
        assert validate_port(65535) == 65535

    def test_invalid_ports(self):
        for port in [0, -1, 65536]:
            with pytest.raises(ValidationError):
                validate_port(port)


class TestValidateSslmode:
    """Tests for sslmode validation."""

    def test_valid(self):
        assert validate_sslmode("verify-full") == "verify-full"

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc:
            validate_sslmode("always")
        assert "verify-ca" in exc.value.hint


class TestValidateVersionString:
    """Tests for server version strings."""

    def test_none(self):
        assert validate_version_string(None) is None

    def test_valid(self):
        assert validate_version_string("16") == "16"
        assert validate_version_string("16.2") == "16.2"
        assert validate_version_string(" 9.6.3 ") == "9.6.3"

    def test_invalid(self):
        for value in ["", "sixteen", "16.x", "1.2.3.4"]:
            with pytest.raises(ValidationError):
                validate_version_string(value)
