"""Server-side flag hashing"""

import hashlib
import hmac


def hash_flag(
    submission: str,
    salt: str,
    algorithm: str = "sha256",
    challenge_salt: str | None = None,
) -> str:
    """Salted one-way hash of a flag, hex encoded.
    digest = H(competition salt + challenge salt + submission)
    """
    digest = hashlib.new(algorithm)
    digest.update(f"{salt}{challenge_salt or ''}{submission}".encode("utf-8"))
    return digest.hexdigest()


def digests_equal(submitted: str, stored: str) -> bool:
    """Case-insensitive, constant-time hex digest comparison"""
    return hmac.compare_digest(
        submitted.strip().lower().encode("ascii", "replace"),
        stored.strip().lower().encode("ascii", "replace"),
    )
