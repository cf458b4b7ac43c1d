"""
Transactional email through Resend.

The only message the API sends is the password reset link. Delivery is
best-effort: ``send_email`` reports failure with its return value and callers
log it and carry on. Without ``RESEND_API_KEY`` messages are logged instead of
sent, which is the normal local setup.
"""

import asyncio
import logging
from html import escape

import resend

from enrollment_api.core.config import settings

logger = logging.getLogger(__name__)

_LAYOUT = """<!DOCTYPE html>
<html>
<body style="font-family: system-ui, sans-serif; line-height: 1.6; color: #1f2937;">
  <div style="max-width: 560px; margin: 0 auto; padding: 32px 16px;">
    <h2 style="color: #1a365d;">{heading}</h2>
    {body}
    <p style="margin-top: 32px; color: #6b7280; font-size: 13px;">{footer}</p>
  </div>
</body>
</html>
"""

_BUTTON = (
    '<p><a href="{url}" style="display: inline-block; background: #1a365d; color: #ffffff; '
    'padding: 12px 24px; border-radius: 6px; text-decoration: none;">{label}</a></p>'
    '<p style="word-break: break-all; font-size: 13px;">{url}</p>'
)


def render_email(heading: str, paragraphs: list[str], footer: str, action: tuple[str, str]) -> str:
    """
    Render the shared HTML layout.

    ``paragraphs`` are escaped here; ``action`` is a (label, url) pair shown
    as a button followed by the raw link.
    """
    label, url = action
    body = "\n    ".join(f"<p>{escape(paragraph)}</p>" for paragraph in paragraphs)
    body += "\n    " + _BUTTON.format(url=escape(url, quote=True), label=escape(label))
    return _LAYOUT.format(heading=escape(heading), body=body, footer=escape(footer))


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send one HTML email.

    Returns:
        True if Resend accepted the message (or it was only logged because
        no API key is configured), False if sending failed
    """
    if not settings.resend_api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    resend.api_key = settings.resend_api_key
    params: resend.Emails.SendParams = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    }

    try:
        # The Resend SDK is synchronous
        sent = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False

    logger.info(f"Email '{subject}' sent to {to_email}, id: {sent['id']}")
    return True


async def send_password_reset(
    to_email: str,
    name: str,
    token: str,
    expires_minutes: int,
) -> bool:
    """Email a single-use password reset link."""
    reset_url = f"{settings.frontend_url.rstrip('/')}/reset-password?token={token}"
    html_content = render_email(
        heading="Reset your password",
        paragraphs=[
            f"Hello {name or 'there'},",
            "We received a request to reset the password of your enrollment account.",
            f"The link below expires in {expires_minutes} minutes and can be used once.",
        ],
        footer="If you did not ask for a password reset, you can ignore this email.",
        action=("Reset password", reset_url),
    )
    return await send_email(
        to_email=to_email,
        subject="Reset your enrollment account password",
        html_content=html_content,
    )
