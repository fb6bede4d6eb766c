"""Matcher Registry - Maps flag types to matcher implementations"""

import logging
from typing import Type

from zdctf.ctf.matchers.base import BaseMatcher

logger = logging.getLogger(__name__)


# Registry of matcher classes, keyed by flag_type
_MATCHER_REGISTRY: dict[str, Type[BaseMatcher]] = {}


def register_matcher(flag_type: str):
    """
    Decorator to register a matcher class for a flag type.

    Usage:
    @register_matcher("static")
    class StaticHashMatcher(BaseMatcher):
        ...
    """

    def decorator(cls: Type[BaseMatcher]) -> Type[BaseMatcher]:
        if flag_type in _MATCHER_REGISTRY:
            logger.warning("Overwriting matcher registration: %s", flag_type)
        cls.flag_type = flag_type
        _MATCHER_REGISTRY[flag_type] = cls
        logger.debug("Registered matcher: %s -> %s", flag_type, cls.__name__)
        return cls

    return decorator


def get_matcher_class(flag_type: str) -> Type[BaseMatcher]:
    """Get a registered matcher class by flag type.
    Raises ValueError if no matcher handles the flag type.
    """
    try:
        return _MATCHER_REGISTRY[flag_type]
    except KeyError:
        raise ValueError(f"Matcher not found for flag type: {flag_type}") from None


def create_matcher(flag_type: str) -> BaseMatcher | None:
    """Create a matcher instance for a flag type, or None if unknown"""
    try:
        return get_matcher_class(flag_type)()
    except ValueError as e:
        logger.error("Failed to create matcher: %s", e)
        return None


def list_registered_matchers() -> list[str]:
    """List all registered flag types"""
    return list(_MATCHER_REGISTRY.keys())


def _register_all_matchers():
    """Import all matcher implementations to register them
    - This is called at module load time.
    """
    # pylint: disable=import-outside-toplevel,unused-import
    from zdctf.ctf.matchers.implementations import regex_pattern, static_hash

    logger.info("Registered %d matchers", len(_MATCHER_REGISTRY))


# Auto-register on import
_register_all_matchers()
