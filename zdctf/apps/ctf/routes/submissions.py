"""CTF Flag Submission API Routes"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from zdctf.core.auth.identity import get_client_ip, get_principal_id
from zdctf.core.data.database import get_db
from zdctf.ctf.processor import SubmissionService
from zdctf.ctf.schemas import Accepted, Rejected, SubmitFlagRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["submissions"])


@router.post("/submissions", response_model=Accepted | Rejected)
def submit_flag(
    body: SubmitFlagRequest,
    request: Request,
    principal_id: str = Depends(get_principal_id),
    db: Session = Depends(get_db),
):
    """Submit a flag for a challenge
    - incorrect flags are a 200 with success=false
    - every other failure is rendered by the error handlers
    """
    service = SubmissionService(db)
    return service.submit_flag(
        principal_id,
        body.challenge_id,
        body.flag_input,
        ip_address=get_client_ip(request),
    )
