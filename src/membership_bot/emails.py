"""Email address helpers: normalization for lookups and masking for logs."""

import re

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lower-case. Pure function."""
    return email.strip().lower()


def mask_emails(text: str) -> str:
    """Replace every email local part after its first character with asterisks.

    ``"alice@company.com"`` becomes ``"a****@company.com"``. The domain is kept
    for debugging. Text without emails is returned unchanged.
    """

    def _mask(match: re.Match) -> str:
        local, domain = match.group(0).split("@", 1)
        return f"{local[0]}{'*' * (len(local) - 1)}@{domain}"

    return _EMAIL_RE.sub(_mask, text)
