"""Input validation helpers for identity data."""
from __future__ import annotations
import re

MAX_EMAIL_LENGTH = 320
MAX_LOCAL_PART_LENGTH = 64
MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63
MAX_NAME_LENGTH = 128

_LOCAL_PART_CHARS = re.compile(r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+")
_LABEL_CHARS = re.compile(r"[a-zA-Z0-9-]+")


def is_valid_email(email: str) -> bool:
    """Check an email address against the local-part and domain rules.

    Args:
        email: Email address to check

    Returns:
        True if the address is acceptable, False otherwise
    """
    if not isinstance(email, str):
        return False
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False

    parts = email.split("@")
    if len(parts) != 2:
        return False

    local, domain = parts
    return is_valid_local_part(local) and is_valid_domain_name(domain)


def is_valid_local_part(local: str) -> bool:
    """Validate the part of an email address before the ``@``."""
    if not local or len(local) > MAX_LOCAL_PART_LENGTH:
        return False
    if not _LOCAL_PART_CHARS.fullmatch(local):
        return False
    if ".." in local:
        return False
    return not local.startswith(".") and not local.endswith(".")


def is_valid_domain_name(domain: str) -> bool:
    """Validate the domain of an email address, label by label."""
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False

    for label in domain.split("."):
        if not label or len(label) > MAX_LABEL_LENGTH:
            return False
        # ASCII letters, digits and hyphen only
        if not _LABEL_CHARS.fullmatch(label):
            return False
        if label[0] == "-" or label[-1] == "-":
            return False

    return True


def validate_name(name: str, field: str) -> str:
    """Validate a display name: required and bounded in length.

    Punctuation such as apostrophes is allowed ("O'Brien").

    Args:
        name: Name to validate
        field: Field name for error messages (e.g., "Full name")

    Returns:
        Trimmed name

    Raises:
        ValueError: If name is invalid
    """
    name = (name or "").strip()
    if not name:
        raise ValueError(f"{field} is required")
    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"{field} exceeds maximum length")
    return name
