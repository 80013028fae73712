"""
Email templates.

Bodies are Jinja2 templates shipped in ``cafechain/templates``.
"""

from datetime import datetime
from functools import lru_cache

from jinja2 import Environment, PackageLoader, select_autoescape

from cafechain.core.config import get_settings

OTP_SUBJECT = "🔐 Your OTP Code - Verify Your Email"


@lru_cache()
def get_template_environment() -> Environment:
    return Environment(
        loader=PackageLoader("cafechain", "templates"),
        autoescape=select_autoescape(["html"]),
    )


def render_otp_email(code: str, valid_minutes: int) -> tuple[str, str]:
    """
    Render the verification email.

    Returns:
        (html_body, text_body)
    """
    settings = get_settings()
    template = get_template_environment().get_template("otp_email.html")

    html = template.render(
        code=code,
        valid_minutes=valid_minutes,
        sender_name=settings.sender_name,
        year=datetime.now().year,
    )
    text = f"Your {settings.sender_name} verification code is {code}."
    if valid_minutes:
        text += f" It is valid for {valid_minutes} minutes."

    return html, text
