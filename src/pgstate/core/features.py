"""Server capability detection.

Maps catalog features to the first PostgreSQL release that supports them
and compares against the server's version number (the integer reported by
``server_version_num``, e.g. 160002 for 16.2 and 90603 for 9.6.3).
"""

from enum import Enum

from pgstate.core.exceptions import ValidationError


class Feature(Enum):
    """Catalog features gated on server version."""
    EXTENSION = "extension"


# Minimum server_version_num per feature
FEATURE_MIN_VERSIONS: dict[Feature, int] = {
    Feature.EXTENSION: 90100,
}


def parse_version(text: str) -> int:
    """Convert a dotted version string to a server_version_num integer.

    From 10 on PostgreSQL versions have two parts (major.minor); before
    that three (major.minor.patch).

    Examples:
        >>> parse_version("16.2")
        160002
        >>> parse_version("9.6.3")
        90603
        >>> parse_version("9.1")
        90100
    """
    parts = text.strip().split(".")
    if not 1 <= len(parts) <= 3 or not all(p.isdigit() for p in parts):
        raise ValidationError(
            f"Invalid PostgreSQL version: {text}",
            hint="Use a dotted version such as 16, 16.2 or 9.6.3",
        )

    numbers = [int(p) for p in parts] + [0, 0]
    major = numbers[0]
    if major >= 10:
        return major * 10000 + numbers[1]
    return major * 10000 + numbers[1] * 100 + numbers[2]


def format_version(version_num: int) -> str:
    """Render a server_version_num integer as a dotted string."""
    major = version_num // 10000
    if major >= 10:
        return f"{major}.{version_num % 10000}"
    return f"{major}.{(version_num // 100) % 100}.{version_num % 100}"


def feature_supported(feature: Feature, version_num: int) -> bool:
    """Check whether a server version supports a feature."""
    return version_num >= FEATURE_MIN_VERSIONS[feature]
