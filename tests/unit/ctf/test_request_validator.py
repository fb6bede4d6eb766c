"""Request validator tests"""

import pytest

from zdctf.ctf.errors import ValidationError
from zdctf.ctf.processor.validator import validate_submission


@pytest.mark.unit
def test_valid_submission_is_normalized():
    assert validate_submission("  warmup ", "  ZD{flag}\n") == ("warmup", "ZD{flag}")


@pytest.mark.unit
@pytest.mark.parametrize("challenge_id", ["", "   ", None])
def test_missing_challenge_reference_rejected(challenge_id):
    with pytest.raises(ValidationError) as exc:
        validate_submission(challenge_id, "ZD{flag}")
    assert exc.value.status_code == 400
    assert "Challenge ID" in exc.value.message


@pytest.mark.unit
@pytest.mark.parametrize("flag_input", ["", " \t\n", None])
def test_empty_submission_rejected(flag_input):
    with pytest.raises(ValidationError):
        validate_submission("warmup", flag_input)


@pytest.mark.unit
def test_length_limit_is_inclusive():
    flag = "A" * 500
    assert validate_submission("warmup", flag) == ("warmup", flag)
    with pytest.raises(ValidationError) as exc:
        validate_submission("warmup", flag + "A")
    assert "too long" in exc.value.message


@pytest.mark.unit
def test_length_is_checked_before_stripping():
    """Padding counts toward the limit"""
    with pytest.raises(ValidationError):
        validate_submission("warmup", "ZD{x}" + " " * 500)


@pytest.mark.unit
def test_custom_max_length():
    with pytest.raises(ValidationError):
        validate_submission("warmup", "ZD{flag}", max_length=4)
