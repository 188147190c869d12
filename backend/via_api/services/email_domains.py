"""
VIA Backend — School Email Allow-List
=======================================

Sign-ups are restricted to school addresses. The allowed suffixes come from
ALLOWED_EMAIL_DOMAINS, e.g. "@utexas.edu,@my.utexas.edu".
"""

from typing import Optional, Sequence

from via_api.config import settings
from via_api.exceptions import MissingFieldsError
from via_api.schemas.user import EmailVerificationResponse


def is_allowed_email(email: str, allowed_domains: Optional[Sequence[str]] = None) -> bool:
    """Case-insensitive suffix match; the address must have a local part."""
    domains = allowed_domains if allowed_domains is not None else settings.allowed_email_domains_list
    address = email.strip().lower()
    if address.count("@") != 1 or address.startswith("@"):
        return False
    return any(address.endswith(domain.lower()) for domain in domains)


def verify_school_email(
    email: Optional[str], allowed_domains: Optional[Sequence[str]] = None
) -> EmailVerificationResponse:
    if email is None or not email.strip():
        raise MissingFieldsError(["email"])
    if is_allowed_email(email, allowed_domains):
        return EmailVerificationResponse(allowed=True, message="Email domain is allowed")
    return EmailVerificationResponse(
        allowed=False,
        message="Sign-ups are limited to school email addresses",
    )
