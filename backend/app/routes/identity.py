"""
Guidepost Backend — Caller Identity Handler
=============================================

What:  GET /api/me echoes the identity established by launch-parameter
       authentication. The mini app uses it to read back its own launch
       context (user id, language, platform) as the server sees it.
"""

from fastapi import APIRouter, Depends

from app.middleware.auth import get_identity
from app.schemas.common import ErrorResponse, IdentityResponse
from app.services.auth_service import VerifiedIdentity

router = APIRouter(prefix="/api", tags=["Identity"])


@router.get(
    "/me",
    response_model=IdentityResponse,
    responses={401: {"description": "Missing, invalid or expired launch parameters", "model": ErrorResponse}},
    summary="Current caller",
)
async def who_am_i(identity: VerifiedIdentity = Depends(get_identity)) -> IdentityResponse:
    return IdentityResponse(
        platform_user_id=identity.platform_user_id,
        issued_at=identity.issued_at,
        params=identity.raw_params,
    )
