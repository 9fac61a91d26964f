from __future__ import annotations

import html as html_lib
import logging

from whats_cooking.config import get_settings
from whats_cooking.providers import resend
from whats_cooking.utils.exceptions import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)

_BASE_STYLE = """
      body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
             line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
      .header { text-align: center; padding: 40px 0; background: linear-gradient(135deg, #f59e0b, #d97706);
                color: white; border-radius: 8px; margin-bottom: 30px; }
      .content { background: #f9fafb; padding: 30px; border-radius: 8px; margin: 20px 0; }
      .otp-code { font-size: 36px; font-weight: bold; letter-spacing: 8px; color: #f59e0b; text-align: center;
                  padding: 20px; background: #fef3c7; border-radius: 8px; margin: 30px 0;
                  border: 2px dashed #f59e0b; }
      .cta-button { display: inline-block; background: #f59e0b; color: white; padding: 12px 24px;
                    text-decoration: none; border-radius: 6px; font-weight: bold; margin: 20px 0; }
      .footer { text-align: center; margin-top: 30px; font-size: 14px; color: #6b7280; }
"""


def render_otp_email(otp: str, full_name: str | None, expires_minutes: int) -> tuple[str, str, str]:
    greeting = f"Hello {full_name}!" if full_name else "Hello!"
    safe_greeting = f"Hello {html_lib.escape(full_name)}!" if full_name else "Hello!"
    subject = "Your verification code for What's Cooking"
    html = f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Verification Code</title>
    <style>{_BASE_STYLE}</style>
  </head>
  <body>
    <div class="header">
      <h1>What's Cooking?</h1>
      <p>Your culinary adventure awaits!</p>
    </div>
    <div class="content">
      <h2>{safe_greeting}</h2>
      <p>Welcome to What's Cooking! To complete your account setup, please enter this verification code:</p>
      <div class="otp-code">{otp}</div>
      <p><strong>Important:</strong></p>
      <ul>
        <li>This code will expire in <strong>{expires_minutes} minutes</strong></li>
        <li>Don't share this code with anyone</li>
        <li>Enter it exactly as shown above</li>
      </ul>
      <p>If you didn't request this verification code, please ignore this email.</p>
    </div>
    <div class="footer">
      <p>Happy cooking!<br>The What's Cooking Team</p>
    </div>
  </body>
</html>
"""
    text = (
        f"{greeting}\n\n"
        "Welcome to What's Cooking!\n\n"
        f"Your verification code is: {otp}\n\n"
        f"This code will expire in {expires_minutes} minutes. Please don't share it with anyone.\n\n"
        "If you didn't request this verification code, please ignore this email.\n\n"
        "Happy cooking!\nThe What's Cooking Team\n"
    )
    return subject, html, text


def render_welcome_email(full_name: str, site_url: str) -> tuple[str, str, str]:
    subject = "Welcome to What's Cooking!"
    html = f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Welcome to What's Cooking!</title>
    <style>{_BASE_STYLE}</style>
  </head>
  <body>
    <div class="header">
      <h1>Welcome to What's Cooking!</h1>
      <p>Your account is ready!</p>
    </div>
    <div class="content">
      <h2>Hi {html_lib.escape(full_name)}!</h2>
      <p>Congratulations! Your What's Cooking account has been successfully created.</p>
      <p>Now you can:</p>
      <ul>
        <li>Generate personalized recipes based on your ingredients</li>
        <li>Discover new cuisines and cooking techniques</li>
        <li>Save your favorite recipes for later</li>
        <li>Set your preferred spice levels and dietary restrictions</li>
      </ul>
      <div style="text-align: center;">
        <a href="{html_lib.escape(site_url)}" class="cta-button">Start Cooking!</a>
      </div>
    </div>
    <div class="footer">
      <p>Best regards,<br>The What's Cooking Team</p>
    </div>
  </body>
</html>
"""
    text = (
        f"Hi {full_name}!\n\n"
        "Welcome to What's Cooking! Your account has been successfully created.\n\n"
        "Now you can:\n"
        "- Generate personalized recipes based on your ingredients\n"
        "- Discover new cuisines and cooking techniques\n"
        "- Save your favorite recipes for later\n"
        "- Set your preferred spice levels and dietary restrictions\n\n"
        f"Visit {site_url} to start cooking!\n\n"
        "Happy cooking!\nThe What's Cooking Team\n"
    )
    return subject, html, text


async def send_otp_email(*, email: str, otp: str, full_name: str | None = None) -> None:
    """Hard dependency of signup: raises on any delivery failure."""
    settings = get_settings()
    if not settings.resend_api_key:
        logger.error("Missing RESEND_API_KEY; cannot send OTP email")
        raise ConfigurationError("Missing email configuration")

    subject, html, text = render_otp_email(otp, full_name, settings.pending_signup_ttl_minutes)
    result = await resend.send_email(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        to=email,
        subject=subject,
        html=html,
        text=text,
    )
    if result["mapped"] is None:
        logger.error("Failed to send OTP email", extra={"email": email, "attempt": result["attempt"]})
        raise EmailDeliveryError()
    logger.info("OTP email sent", extra={"email": email, "message_id": result["mapped"].get("message_id")})


async def send_welcome_email(*, email: str, full_name: str) -> bool:
    """Best-effort. Never raises to callers."""
    settings = get_settings()
    subject, html, text = render_welcome_email(full_name, settings.site_url)
    try:
        result = await resend.send_email(
            api_key=settings.resend_api_key,
            sender=settings.email_from,
            to=email,
            subject=subject,
            html=html,
            text=text,
        )
    except Exception:  # noqa: BLE001
        logger.exception("Welcome email raised", extra={"email": email})
        return False
    if result["mapped"] is None:
        logger.warning("Failed to send welcome email", extra={"email": email, "attempt": result["attempt"]})
        return False
    return True
