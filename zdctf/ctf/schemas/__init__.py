"""CTF Schemas"""

from zdctf.ctf.schemas.challenge import (
    ChallengeSchema,
    ConnectionInfo,
    FileDownloadConnection,
    NetcatConnection,
    WebConnection,
)
from zdctf.ctf.schemas.settings import SETTING_KEYS, SettingsSnapshot
from zdctf.ctf.schemas.submission import (
    Accepted,
    Outcome,
    Rejected,
    SubmitFlagRequest,
)

__all__ = [
    "ChallengeSchema",
    "ConnectionInfo",
    "WebConnection",
    "NetcatConnection",
    "FileDownloadConnection",
    "SettingsSnapshot",
    "SETTING_KEYS",
    "SubmitFlagRequest",
    "Accepted",
    "Rejected",
    "Outcome",
]
