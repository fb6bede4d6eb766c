"""Request Validator - structural checks before any storage access"""

from zdctf.config import settings
from zdctf.ctf.errors import ValidationError


def validate_submission(
    challenge_id: str | None,
    flag_input: str | None,
    max_length: int | None = None,
) -> tuple[str, str]:
    """Validate and normalize a submission

    Surrounding whitespace is stripped from both fields; a whitespace-only
    field counts as empty. The length limit applies to the text as sent.

    Returns:
        (challenge_id, submission) normalized
    Raises:
        ValidationError: empty challenge reference, empty or oversized submission
    """
    max_length = max_length or settings.MAX_SUBMISSION_LENGTH

    challenge_id = (challenge_id or "").strip()
    if not challenge_id:
        raise ValidationError("Challenge ID is required")

    raw = flag_input or ""
    if len(raw) > max_length:
        raise ValidationError(f"Flag is too long (max {max_length} characters)")

    submission = raw.strip()
    if not submission:
        raise ValidationError("Flag is required")

    return challenge_id, submission
