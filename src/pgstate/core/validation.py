"""Input validation and identifier quoting.

Provides:
- The single identifier quoting routine used for every statement
- Validation for catalog object names (extensions, schemas)
- Validation for connection settings (ports, SSL modes)

All validators return the validated value or raise ValidationError.
"""

from typing import Optional

from pgstate.core.exceptions import ValidationError


# PostgreSQL NAMEDATALEN - 1; longer names are silently truncated by the
# server, which would break read-after-write identity.
MAX_IDENTIFIER_BYTES = 63

SSL_MODES: frozenset[str] = frozenset({
    "disable", "allow", "prefer", "require", "verify-ca", "verify-full",
})


def quote_identifier(name: str) -> str:
    """Quote a string for use as an SQL identifier.

    Embedded double quotes are doubled and the result is wrapped in double
    quotes, so case and special characters survive and the value can never
    terminate the identifier early. Anything from the first NUL byte on is
    dropped, since the server cannot store it.

    Examples:
        >>> quote_identifier("hstore")
        '"hstore"'
        >>> quote_identifier('we"ird')
        '"we""ird"'
    """
    end = name.find("\x00")
    if end > -1:
        name = name[:end]
    return '"' + name.replace('"', '""') + '"'


def validate_object_name(value: str, object_type: str = "object") -> str:
    """Validate the name of a catalog object.

    Unlike role or database names created by hand, extension and schema
    names are quoted on every use, so any printable characters are allowed.

    Rules:
    - Cannot be empty
    - Cannot contain NUL bytes
    - At most 63 bytes once UTF-8 encoded

    Args:
        value: The name to validate
        object_type: Type for error messages (e.g., "extension", "schema")

    Returns:
        The validated name

    Raises:
        ValidationError: If validation fails
    """
    if not value:
        raise ValidationError(
            f"{object_type.title()} name cannot be empty",
            hint="Provide a valid name",
        )

    if "\x00" in value:
        raise ValidationError(
            f"{object_type.title()} name contains a NUL byte",
            details=[f"Provided: {value!r}"],
        )

    size = len(value.encode("utf-8"))
    if size > MAX_IDENTIFIER_BYTES:
        raise ValidationError(
            f"{object_type.title()} name exceeds maximum length "
            f"({size} > {MAX_IDENTIFIER_BYTES} bytes)",
            hint=f"Use a name with {MAX_IDENTIFIER_BYTES} or fewer bytes",
            details=[f"Provided: {value[:50]}..."],
        )

    return value


def validate_schema_change(name: str, new_schema: str) -> str:
    """Validate the target schema of an extension relocation.

    Args:
        name: Extension being relocated
        new_schema: Requested schema

    Returns:
        The validated schema name

    Raises:
        ValidationError: If the schema is empty or otherwise invalid
    """
    if new_schema == "":
        raise ValidationError(
            f"Cannot move extension '{name}' to an empty schema name",
            hint="Set a schema that exists, or leave the schema unchanged",
        )
    return validate_object_name(new_schema, "schema")


def validate_port(value: int) -> int:
    """Validate a port number.

    Args:
        value: Port number to validate

    Returns:
        The validated port number

    Raises:
        ValidationError: If port is out of valid range
    """
    if not 1 <= value <= 65535:
        raise ValidationError(
            f"Invalid port number: {value}",
            hint="Port must be between 1 and 65535",
        )
    return value


def validate_sslmode(value: str) -> str:
    """Validate a libpq sslmode value."""
    if value not in SSL_MODES:
        raise ValidationError(
            f"Invalid sslmode: {value}",
            hint=f"Use one of: {', '.join(sorted(SSL_MODES))}",
        )
    return value


def validate_version_string(value: Optional[str]) -> Optional[str]:
    """Validate a PostgreSQL server version string such as "16.2" or "9.6.3".

    Returns:
        The validated string, or None when no version was given

    Raises:
        ValidationError: If the string is not dotted integers
    """
    if value is None:
        return None

    parts = value.strip().split(".")
    if not 1 <= len(parts) <= 3 or not all(p.isdigit() for p in parts):
        raise ValidationError(
            f"Invalid PostgreSQL version: {value}",
            hint="Use a dotted version such as 16, 16.2 or 9.6.3",
        )
    return value.strip()
