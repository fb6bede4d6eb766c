"""Flag submission pipeline"""

from zdctf.ctf.processor.policy import PolicyGate
from zdctf.ctf.processor.recorder import OutcomeRecorder
from zdctf.ctf.processor.scoring import Award, calculate_award, decayed_points
from zdctf.ctf.processor.submission_service import SubmissionService
from zdctf.ctf.processor.validator import validate_submission

__all__ = [
    "Award",
    "OutcomeRecorder",
    "PolicyGate",
    "SubmissionService",
    "calculate_award",
    "decayed_points",
    "validate_submission",
]
