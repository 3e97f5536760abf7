"""Routes fronting the media host and the mail relay."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_notifier, get_signer
from app.schemas import EmailConfig, EmailRequest, EmailResult, SignRequest, SignResponse, UploadConfig
from services.notifications import EmailNotConfigured, EmailNotifier, NotificationError
from services.signing import SigningNotConfigured, UploadSigner

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/uploads/sign",
    response_model=SignResponse,
    tags=["uploads"],
    summary="Sign direct upload parameters.",
)
def sign_upload(payload: SignRequest, signer: UploadSigner = Depends(get_signer)) -> SignResponse:
    try:
        signature = signer.sign(payload.params_to_sign)
    except SigningNotConfigured as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return SignResponse(signature=signature)


@router.get("/uploads/config", response_model=UploadConfig, tags=["uploads"])
def upload_config(signer: UploadSigner = Depends(get_signer)) -> UploadConfig:
    return signer.upload_config()


@router.get("/notifications/email", response_model=EmailConfig, tags=["notifications"])
def email_configuration(notifier: EmailNotifier = Depends(get_notifier)) -> EmailConfig:
    return notifier.config()


@router.post("/notifications/email", response_model=EmailResult, tags=["notifications"])
def send_email(payload: EmailRequest, notifier: EmailNotifier = Depends(get_notifier)) -> EmailResult:
    config = notifier.config()
    if not config.configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Email not configured properly", "missing": config.missing},
        )
    try:
        return notifier.send(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except EmailNotConfigured as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "missing": exc.missing},
        ) from exc
    except NotificationError as exc:
        logger.error("Email delivery failed", extra={"record_type": payload.type, "reason": str(exc)})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
