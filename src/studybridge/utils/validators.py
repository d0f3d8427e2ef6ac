"""Request validation helpers.

Checks that run before any upstream call is made. A failing check raises
ClientInputError, which the web layer turns into a 400 ``{"error": ...}``.

Functions:
- require_fields(values, *names, message=) -> None: Reject missing identifiers
- is_missing(value) -> bool: Falsy-but-not-False test used by require_fields
- email_domain(email) -> str | None: Lower-cased domain of an e-mail address
"""

from __future__ import annotations

from typing import Any, Mapping


class ClientInputError(Exception):
    """Raised when a request is missing or carries an invalid field."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingParameterError(ClientInputError):
    """Raised when a required identifying field is absent."""

    def __init__(self, names: list[str], message: str | None = None):
        self.names = names
        if message is None:
            message = f"{' and '.join(names)} {'is' if len(names) == 1 else 'are'} required"
        super().__init__(message)


class InvalidParameterError(ClientInputError):
    """Raised when a field is present but has an unusable value."""


class NotFoundError(Exception):
    """Raised when a lookup the request depends on found nothing."""

    status_code = 404

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnauthorizedError(Exception):
    """Raised when a route needs the caller's own credentials and got none."""

    status_code = 401

    def __init__(self, message: str = "No authorization header provided"):
        self.message = message
        super().__init__(message)


def is_missing(value: Any) -> bool:
    """Return True for None, empty strings, 0 and empty collections.

    ``False`` is a legitimate value for flags and does not count as missing.
    """
    if value is False:
        return False
    return not value


def require_fields(
    values: Mapping[str, Any],
    *names: str,
    message: str | None = None,
) -> None:
    """Ensure every named field is present.

    Args:
        values: Mapping of field name to received value
        names: Required field names
        message: Error text override

    Raises:
        MissingParameterError: If any field is missing
    """
    missing = [name for name in names if is_missing(values.get(name))]
    if missing:
        raise MissingParameterError(missing, message)


def email_domain(email: str | None) -> str | None:
    """Extract the domain part of an e-mail address.

    Examples:
        "student@ExampleU.edu" -> "exampleu.edu"
        "no-at-sign" -> None

    Args:
        email: E-mail address

    Returns:
        Domain after the '@', lower-cased and trimmed, or None
    """
    if not email or "@" not in email:
        return None
    domain = email.split("@")[1].strip().lower()
    return domain or None
