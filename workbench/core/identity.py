"""Version identity rules.

Every versioned object is addressed by the pair (stix.id, stix.modified).
The id is stable across versions and shaped ``<type>--<uuid>``; modified is
an ISO 8601 timestamp.  Timestamps are normalised to UTC with millisecond
precision (``2021-04-01T12:00:00.000Z``) before they reach the store, so the
stored strings sort lexically in chronological order and two spellings of
the same instant map to the same key.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from ..exceptions import BadlyFormattedParameterError, MissingParameterError

STIX_ID_PATTERN = re.compile(
    r"^(?P<type>[a-z][a-z0-9-]*[a-z0-9])--"
    r"(?P<uuid>[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})$"
)


def generate_stix_id(stix_type: str) -> str:
    """Generate a new logical id for an object of the given STIX type."""
    return f"{stix_type}--{uuid.uuid4()}"


def is_valid_stix_id(value: Any) -> bool:
    return isinstance(value, str) and STIX_ID_PATTERN.match(value) is not None


def stix_type_of(stix_id: str) -> str:
    """Return the type prefix of a well-formed STIX id."""
    match = STIX_ID_PATTERN.match(stix_id)
    if match is None:
        raise BadlyFormattedParameterError("stixId", stix_id)
    return match.group("type")


def validate_stix_id(stix_id: Optional[str], parameter_name: str = "stixId") -> str:
    """Raise MissingParameterError / BadlyFormattedParameterError for unusable ids."""
    if not stix_id:
        raise MissingParameterError(parameter_name)
    if not is_valid_stix_id(stix_id):
        raise BadlyFormattedParameterError(parameter_name, stix_id)
    return stix_id


def format_timestamp(value: datetime) -> str:
    """Format a datetime as a STIX timestamp with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def normalize_timestamp(value: Any, parameter_name: str = "modified") -> str:
    """Parse a timestamp (string or datetime) and return its canonical form."""
    if value is None or value == "":
        raise MissingParameterError(parameter_name)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if not isinstance(value, str):
        raise BadlyFormattedParameterError(parameter_name, value)
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise BadlyFormattedParameterError(parameter_name, value) from None
    return format_timestamp(parsed)


def validate_version_key(stix_id: Optional[str], modified: Any) -> tuple[str, str]:
    """Validate and normalise a full (stix.id, stix.modified) key."""
    return validate_stix_id(stix_id), normalize_timestamp(modified)
