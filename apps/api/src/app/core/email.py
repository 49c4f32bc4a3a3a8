"""
Email Service using Resend

Handles sending the one-time verification code used by organization
registration.
"""

import asyncio
import logging
import os
from html import escape

import resend

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = os.getenv("RESEND_API_KEY")

# Configurations
EMAIL_FROM = os.getenv("EMAIL_FROM", "OneAU <noreply@oneau.dev>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
PLATFORM_NAME = os.getenv("PLATFORM_NAME", "OneAU")


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_verification_code(
    to_email: str,
    code: str,
    expires_in_minutes: int,
) -> bool:
    """Send the one-time registration code."""
    safe_platform = escape(PLATFORM_NAME)
    safe_code = escape(code)

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1e3a8a; margin-bottom: 24px; }}
            .code {{ display: inline-block; font-size: 32px; letter-spacing: 8px; font-weight: 700; background-color: #eff6ff; color: #1e3a8a; padding: 16px 28px; border-radius: 8px; margin: 24px 0; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Verify Your Email</h1>

            <p>Use the code below to finish registering your organization on {safe_platform}.</p>

            <div class="code">{safe_code}</div>

            <p><strong>This code expires in {expires_in_minutes} minutes</strong> and can be used once.</p>

            <div class="footer">
                <p>If you didn't request this code, you can safely ignore this email.</p>
                <p>{safe_platform} - <a href="{FRONTEND_URL}">{FRONTEND_URL}</a></p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Your {safe_platform} verification code",
        html_content=html_content,
    )
