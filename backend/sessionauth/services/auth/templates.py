"""Verification email rendering."""

from __future__ import annotations

from jinja2 import Environment, select_autoescape

from sessionauth.services._shared.ports.mailer import OutgoingMail

VERIFY_SUBJECT = "Verify your email"

_env = Environment(autoescape=select_autoescape(default_for_string=True))

_VERIFY_HTML = _env.from_string(
    """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Verify Your Email</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>Welcome aboard!</h2>
    <p>Thanks for signing up. Use the code below to confirm your email address:</p>
    <div style="text-align: center; margin: 30px 0;">
      <span style="font-size: 32px; font-weight: bold; letter-spacing: 5px; color: #4CAF50;
                   background-color: #f4f4f4; border: 2px dashed #4CAF50; padding: 20px;
                   border-radius: 10px; display: inline-block;">{{ code }}</span>
    </div>
    <p>Enter this code in the verification form to finish registering.</p>
    <p style="color: #666; font-size: 12px; margin-top: 30px;">
      This code will expire in {{ minutes }} minutes. If you didn't create an account, you can ignore this email.
    </p>
  </div>
</body>
</html>
"""
)

_VERIFY_TEXT = _env.from_string(
    "Welcome aboard!\n\n"
    "Your verification code is {{ code }}.\n"
    "It expires in {{ minutes }} minutes.\n"
)


def verification_email(to: str, code: str, *, minutes: int = 15) -> OutgoingMail:
    """Render the verification message carrying ``code`` for ``to``."""
    return OutgoingMail(
        to=to,
        subject=VERIFY_SUBJECT,
        html=_VERIFY_HTML.render(code=code, minutes=minutes),
        text=_VERIFY_TEXT.render(code=code, minutes=minutes),
    )
