"""
Email routes.

- POST /api/email/send - send an arbitrary message
- POST /api/email/report - send a report rendered from JSON data
"""

import base64
import binascii
import logging

from fastapi import APIRouter, Depends, HTTPException

from catalyst.services.email_service import EmailReceipt, EmailService
from catalyst.services.mailers import Attachment, EmailMessage

from ..auth import verify_token
from ..dependencies import get_email_service
from ..models import EmailResponse, ReportEmailRequest, SendEmailRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["email"], dependencies=[Depends(verify_token)])


def _response(receipt: EmailReceipt) -> EmailResponse:
    return EmailResponse(
        provider=receipt.provider,
        used_fallback=receipt.used_fallback,
        message_id=receipt.message_id,
    )


@router.post("/send", response_model=EmailResponse)
async def send_email(body: SendEmailRequest, service: EmailService = Depends(get_email_service)) -> EmailResponse:
    attachments = []
    for attachment in body.attachments:
        try:
            content = base64.b64decode(attachment.content_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail=f"Attachment {attachment.filename} is not valid base64")
        attachments.append(Attachment(attachment.filename, content, attachment.content_type))

    message = EmailMessage(
        to=body.to,
        subject=body.subject,
        html=body.html,
        text=body.text,
        attachments=attachments,
    )
    return _response(await service.send(message))


@router.post("/report", response_model=EmailResponse)
async def send_report(body: ReportEmailRequest, service: EmailService = Depends(get_email_service)) -> EmailResponse:
    receipt = await service.send_report(body.to, body.report_type, body.data)
    return _response(receipt)
