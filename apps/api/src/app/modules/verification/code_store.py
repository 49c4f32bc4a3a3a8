"""
One-time Verification Code Store

Codes live in Redis under verification_code:{email} with a TTL, so they
survive restarts and are shared by every API instance. Expiry is Redis'
job: a key that is gone is a code that expired (or was never issued).

Redemption is single use. After a matching GET the key is removed with
DEL, and only the caller whose DEL actually removed it (returns 1) wins;
a concurrent second redemption of the same code sees 0 and fails.

A redeemed code leaves a verified_email:{email} marker with the same TTL.
Registration consumes either a fresh code or that marker, once.
"""

import enum
import secrets

from redis.asyncio import Redis

CODE_KEY_PREFIX = "verification_code:"
VERIFIED_KEY_PREFIX = "verified_email:"
CODE_MIN = 100000
CODE_MAX = 999999


class CodeCheck(str, enum.Enum):
    VALID = "valid"
    MISSING = "missing"  # Never issued, expired, or already redeemed
    MISMATCH = "mismatch"


def _normalize(email: str) -> str:
    return email.strip().lower()


def code_key(email: str) -> str:
    return f"{CODE_KEY_PREFIX}{_normalize(email)}"


def verified_key(email: str) -> str:
    return f"{VERIFIED_KEY_PREFIX}{_normalize(email)}"


def generate_code() -> str:
    """Six-digit numeric code from a CSPRNG."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


async def store_code(client: Redis, email: str, code: str, ttl_seconds: int) -> None:
    """Store a code, replacing any previous one for the address."""
    await client.set(code_key(email), code, ex=ttl_seconds)


async def delete_code(client: Redis, email: str) -> None:
    await client.delete(code_key(email))


async def check_code(client: Redis, email: str, code: str) -> CodeCheck:
    """Compare without consuming."""
    stored = await client.get(code_key(email))
    if stored is None:
        return CodeCheck.MISSING
    if not secrets.compare_digest(str(stored), code.strip()):
        return CodeCheck.MISMATCH
    return CodeCheck.VALID


async def redeem_code(client: Redis, email: str, code: str) -> CodeCheck:
    """Compare and consume; at most one caller can redeem a given code."""
    result = await check_code(client, email, code)
    if result != CodeCheck.VALID:
        return result

    removed = await client.delete(code_key(email))
    return CodeCheck.VALID if removed == 1 else CodeCheck.MISSING


async def mark_verified(client: Redis, email: str, ttl_seconds: int) -> None:
    await client.set(verified_key(email), "1", ex=ttl_seconds)


async def consume_verified(client: Redis, email: str) -> bool:
    """Use up the verified marker; True only for the caller that removed it."""
    return await client.delete(verified_key(email)) == 1
