"""Flag Submission Request/Outcome Schemas"""

from typing import Literal

from pydantic import BaseModel, ConfigDict

INCORRECT_MESSAGE = "Incorrect flag. Try again."


class SubmitFlagRequest(BaseModel):
    """Flag submission body
    - Shape only; content rules live in the request validator
    - Client computed hashes are dropped, flags are always hashed server side
    """

    model_config = ConfigDict(extra="ignore")

    challenge_id: str = ""
    flag_input: str = ""


class Accepted(BaseModel):
    """Correct flag, points recorded"""

    success: Literal[True] = True
    points_awarded: int
    is_first_blood: bool
    message: str

    @classmethod
    def for_award(cls, points: int, is_first_blood: bool) -> "Accepted":
        message = (
            f"🩸 FIRST BLOOD! You earned {points} points!"
            if is_first_blood
            else f"Correct! You earned {points} points!"
        )
        return cls(points_awarded=points, is_first_blood=is_first_blood, message=message)


class Rejected(BaseModel):
    """Incorrect flag; never says why"""

    success: Literal[False] = False
    message: str = INCORRECT_MESSAGE


Outcome = Accepted | Rejected
