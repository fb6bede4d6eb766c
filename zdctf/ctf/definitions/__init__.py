"""CTF Definition Loader"""

from zdctf.ctf.definitions.loader import (
    DefinitionError,
    DefinitionLoader,
    get_loader,
    load_definitions_on_startup,
)

__all__ = [
    "DefinitionError",
    "DefinitionLoader",
    "get_loader",
    "load_definitions_on_startup",
]
