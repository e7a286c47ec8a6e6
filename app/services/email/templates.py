"""
Transactional email templates (HTML via Jinja2, plain-text twin built alongside).
"""
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings

_env = Environment(
    loader=FileSystemLoader(os.path.join(os.path.dirname(__file__), "templates")),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


def _render(template_name: str, **context) -> str:
    context.setdefault("site_name", settings.site_name)
    context.setdefault("year", datetime.now(timezone.utc).year)
    return _env.get_template(template_name).render(**context)


def verification_email(username: str, verification_url: str) -> RenderedEmail:
    intro = (
        "Thank you for signing up! Please verify your email address to activate your account "
        "and start reading your favorite manga."
    )
    html = _render(
        "verify_email.html",
        title="Verify Your Email",
        heading=f"Welcome to {settings.site_name}!",
        username=username,
        intro=intro,
        action_url=verification_url,
        action_label="Verify Email Address",
        expires_in="24 hours",
    )
    text = (
        f"Hi {username},\n\n{intro}\n\n"
        f"Verify your email: {verification_url}\n\n"
        "This link will expire in 24 hours.\n"
        f"If you didn't create an account on {settings.site_name}, you can safely ignore this email."
    )
    return RenderedEmail(subject=f"Verify your {settings.site_name} account", text=text, html=html)


def password_reset_email(username: str, reset_url: str) -> RenderedEmail:
    intro = "We received a request to reset your password. Click the button below to create a new password:"
    html = _render(
        "reset_password.html",
        title="Reset Your Password",
        heading="Reset Your Password",
        username=username,
        intro=intro,
        action_url=reset_url,
        action_label="Reset Password",
        expires_in="1 hour",
    )
    text = (
        f"Hi {username},\n\n{intro}\n{reset_url}\n\n"
        "This link will expire in 1 hour.\n"
        "If you didn't request a password reset, please ignore this email and your password will remain unchanged."
    )
    return RenderedEmail(subject=f"Reset your {settings.site_name} password", text=text, html=html)
