"""CTF Challenge Definition Schemas"""

import hashlib
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class WebConnection(BaseModel):
    """Challenge reachable over HTTP"""

    kind: Literal["web"]
    url: str = Field(min_length=1, max_length=500)


class NetcatConnection(BaseModel):
    """Challenge reachable over a raw TCP socket"""

    kind: Literal["netcat"]
    host: str = Field(min_length=1, max_length=255)
    port: int = Field(ge=1, le=65535)


class FileDownloadConnection(BaseModel):
    """Challenge shipped as a downloadable artifact"""

    kind: Literal["file_download"]
    url: str = Field(min_length=1, max_length=500)
    filename: str | None = Field(default=None, max_length=255)


ConnectionInfo = Annotated[
    WebConnection | NetcatConnection | FileDownloadConnection,
    Field(discriminator="kind"),
]


class ChallengeSchema(BaseModel):
    """Validates challenge YAML structure

    Static challenges carry either a plaintext ``flag`` (hashed at load time,
    never stored) or a precomputed ``flag_hash``. Regex challenges carry a
    ``flag_pattern``.
    """

    id: str = Field(
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$",
        min_length=1,
        max_length=64,
        description="Unique challenge identifier (lowercase, hyphens allowed)",
    )
    title: str = Field(min_length=3, max_length=200)
    description: str = ""
    category: Literal["Web", "Pwn", "Forensics", "Crypto", "Other"] = "Other"
    points: int = Field(ge=0, le=10000, default=100)

    flag_type: Literal["static", "regex"] = "static"
    flag: str | None = Field(default=None, min_length=1, max_length=500)
    flag_hash: str | None = Field(default=None, pattern=r"^[0-9a-fA-F]+$")
    flag_salt: str | None = Field(default=None, max_length=64)
    hash_algorithm: str = "sha256"
    flag_pattern: str | None = Field(default=None, min_length=1)

    dependencies: list[str] = Field(default_factory=list)
    connection_info: ConnectionInfo | None = None
    is_active: bool = True

    @field_validator("hash_algorithm")
    @classmethod
    def validate_hash_algorithm(cls, v: str) -> str:
        """Only fixed-length digests from hashlib are accepted"""
        v = v.lower()
        if v not in hashlib.algorithms_guaranteed or v.startswith("shake_"):
            raise ValueError(f"Unsupported hash algorithm: {v}")
        return v

    @model_validator(mode="after")
    def validate_secret(self):
        """Each flag type needs its own secret definition"""
        if self.flag_type == "static":
            if not self.flag and not self.flag_hash:
                raise ValueError("static challenges need 'flag' or 'flag_hash'")
            if self.flag and self.flag_hash:
                raise ValueError("provide only one of 'flag' and 'flag_hash'")
        elif not self.flag_pattern:
            raise ValueError("regex challenges need 'flag_pattern'")
        if self.id in self.dependencies:
            raise ValueError("challenge cannot depend on itself")
        return self
