"""Honeypot flag detection"""

from zdctf.ctf.matchers.hashing import digests_equal, hash_flag
from zdctf.ctf.schemas.settings import SettingsSnapshot


def is_honeypot(submission: str, snapshot: SettingsSnapshot) -> bool:
    """Whether the submission is the configured honeypot flag
    - honeypot_hash is sha256(flag_salt + flag), independent of any challenge
    """
    if not snapshot.honeypot_hash:
        return False
    return digests_equal(
        hash_flag(submission, salt=snapshot.flag_salt, algorithm="sha256"),
        snapshot.honeypot_hash,
    )
