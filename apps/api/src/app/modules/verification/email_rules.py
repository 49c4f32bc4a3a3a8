"""
Registration Email Rules

Checks an address before a code is issued or an account is created:
1. Syntax (email-validator, no network)
2. Role pattern: students must use u<7 digits>@au.edu, organizations
   any ordinary address
3. Disposable-domain blocklist
4. MX lookup (dnspython async resolver), skipped when
   settings.email_mx_check is off
"""

import enum
import logging
import re
from dataclasses import dataclass

import dns.asyncresolver
import dns.exception
import dns.resolver
from email_validator import EmailNotValidError, validate_email

from app.core.config import settings

logger = logging.getLogger(__name__)

STUDENT_EMAIL_PATTERN = re.compile(r"^u\d{7}@au\.edu$")
ORGANIZATION_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

DISPOSABLE_DOMAINS = frozenset(
    {
        "10minutemail.com",
        "tempmail.org",
        "guerrillamail.com",
        "mailinator.com",
        "throwaway.email",
        "temp-mail.org",
        "tempmail.net",
        "guerrillamailblock.com",
        "sharklasers.com",
        "guerrillamail.de",
        "guerrillamail.info",
        "guerrillamail.biz",
        "guerrillamail.net",
        "pokemail.net",
        "spam4.me",
        "bccto.me",
        "chacuo.net",
        "dispostable.com",
    }
)

MX_LOOKUP_TIMEOUT_SECONDS = 5.0


class EmailRole(str, enum.Enum):
    STUDENT = "student"
    ORGANIZATION = "organization"


@dataclass(frozen=True)
class EmailCheck:
    """Outcome of an email rule check; `reason` is user-facing."""

    valid: bool
    reason: str | None = None
    kind: EmailRole | None = None
    domain: str | None = None


def classify_email(email: str) -> EmailRole | None:
    """Which pattern an address satisfies; the student pattern wins."""
    if STUDENT_EMAIL_PATTERN.match(email):
        return EmailRole.STUDENT
    if ORGANIZATION_EMAIL_PATTERN.match(email):
        return EmailRole.ORGANIZATION
    return None


def is_disposable_domain(domain: str) -> bool:
    return domain.lower() in DISPOSABLE_DOMAINS


def check_email_format(email: str, role: EmailRole) -> EmailCheck:
    """Offline checks: syntax, role pattern and the disposable blocklist."""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return EmailCheck(valid=False, reason="Invalid email format")

    kind = classify_email(email)
    if kind is None:
        return EmailCheck(valid=False, reason="Invalid email format")

    if role == EmailRole.STUDENT and kind != EmailRole.STUDENT:
        return EmailCheck(
            valid=False,
            reason="Students must use AU email addresses (u[7-digits]@au.edu)",
        )
    if role == EmailRole.ORGANIZATION and kind != EmailRole.ORGANIZATION:
        return EmailCheck(
            valid=False,
            reason="Please use a valid email address for organization registration",
        )

    domain = email.rsplit("@", 1)[1].lower()
    if is_disposable_domain(domain):
        return EmailCheck(
            valid=False,
            reason="Disposable email addresses are not allowed",
            domain=domain,
        )

    return EmailCheck(valid=True, kind=kind, domain=domain)


async def check_mx(domain: str) -> str | None:
    """
    Look up MX records for a domain.

    Returns:
        None if the domain accepts mail, otherwise the rejection reason
    """
    try:
        answer = await dns.asyncresolver.resolve(
            domain, "MX", lifetime=MX_LOOKUP_TIMEOUT_SECONDS
        )
    except dns.resolver.NoAnswer:
        return "Domain does not accept emails (no MX records)"
    except (dns.resolver.NXDOMAIN, dns.resolver.NoNameservers):
        return "Domain not found or invalid"
    except dns.exception.DNSException as e:
        logger.warning(f"MX lookup for {domain} failed: {e}")
        return "Domain not found or invalid"

    if len(answer) == 0:
        return "Domain does not accept emails (no MX records)"
    return None


async def validate_email_for_registration(email: str, role: EmailRole) -> EmailCheck:
    """
    Full registration check for an address.

    Args:
        email: Address as entered (compared case-sensitively against the
            patterns, like the login form sends it)
        role: The kind of account being registered

    Returns:
        EmailCheck with valid=False and a reason on the first failed rule
    """
    result = check_email_format(email, role)
    if not result.valid or not settings.email_mx_check:
        return result

    reason = await check_mx(result.domain)
    if reason:
        logger.info(f"Email domain rejected for registration: {result.domain} ({reason})")
        return EmailCheck(valid=False, reason=reason, domain=result.domain)

    return result
