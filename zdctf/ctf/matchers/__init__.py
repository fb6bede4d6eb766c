"""Secret Matchers"""

from zdctf.ctf.matchers.base import BaseMatcher
from zdctf.ctf.matchers.hashing import digests_equal, hash_flag
from zdctf.ctf.matchers.honeypot import is_honeypot
from zdctf.ctf.matchers.registry import (
    create_matcher,
    get_matcher_class,
    list_registered_matchers,
    register_matcher,
)
from zdctf.ctf.matchers.result import MatchResult
from zdctf.ctf.matchers.safety import SafetyReport, check_pattern_safety

__all__ = [
    "BaseMatcher",
    "MatchResult",
    "SafetyReport",
    "check_pattern_safety",
    "create_matcher",
    "digests_equal",
    "get_matcher_class",
    "hash_flag",
    "is_honeypot",
    "list_registered_matchers",
    "register_matcher",
]
