"""
VIA Backend — Auth Handlers (/api/v1/auth)
============================================

Sign-up itself happens against Supabase Auth from the client; this API only
answers whether an address is eligible.
"""

from fastapi import APIRouter

from via_api.schemas.common import ErrorResponse
from via_api.schemas.user import EmailVerificationRequest, EmailVerificationResponse
from via_api.services.email_domains import verify_school_email

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post(
    "/verify-school-email",
    response_model=EmailVerificationResponse,
    responses={400: {"description": "Missing email", "model": ErrorResponse}},
    summary="Verify school email",
    description="Checks whether an address belongs to an allowed school domain (e.g. @utexas.edu).",
)
async def verify_email(body: EmailVerificationRequest) -> EmailVerificationResponse:
    return verify_school_email(body.email)
