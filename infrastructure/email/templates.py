"""Jinja2 rendering for the transactional email templates.

Every template extends ``base.html`` and is rendered with autoescaping on,
so user-controlled values (name, avatar URL, location, user agent) are
always escaped. Each TemplateKind has a fixed subject, header, link path
and expiry hint in KIND_SPECS.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote, urlencode

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from errors import TemplateInputInvalidError
from schemas.models.email import GeoResult, LoginContext, RenderedEmail, TemplateKind
from shared.datetime_utils import format_login_time
from shared.text_utils import strip_html, truncate
from shared.validators import is_absolute_http_url, validate_token

_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)

USER_AGENT_DISPLAY_LIMIT = 60


@dataclass(frozen=True)
class KindSpec:
    template: str
    subject: str
    title: str
    link_path: Optional[str] = None
    expiry_hint: Optional[str] = None


KIND_SPECS: dict[TemplateKind, KindSpec] = {
    TemplateKind.VERIFY_EMAIL: KindSpec(
        template="verify_email.html",
        subject="Verify your email address",
        title="📧 Verify Your Email",
        link_path="/api/auth/verify-email",
        expiry_hint="24 hours",
    ),
    TemplateKind.WELCOME: KindSpec(
        template="welcome.html",
        subject="Welcome! Your account is ready",
        title="🎉 Welcome Aboard!",
    ),
    TemplateKind.PASSWORD_RESET: KindSpec(
        template="password_reset.html",
        subject="Reset your password",
        title="🔑 Reset Your Password",
        link_path="/reset-password",
        expiry_hint="1 hour",
    ),
    TemplateKind.LOGIN_NOTIFICATION: KindSpec(
        template="login_notification.html",
        subject="New login to your account",
        title="🔐 New Login Detected",
    ),
    TemplateKind.EMAIL_CHANGE_VERIFICATION: KindSpec(
        template="email_change_verification.html",
        subject="Verify your new email address",
        title="Verify Email Change",
        link_path="/api/auth/verify-email-change",
        expiry_hint="24 hours",
    ),
}


def resolve_action_url(kind: TemplateKind, token_or_url: str, base_url: str) -> str:
    """Turn a token or a ready-made link into the link placed in the email.

    Values starting with ``http://`` or ``https://`` must be absolute
    URLs and are returned unchanged. Anything else is treated as a bare
    token and joined to the kind's fixed path: ``{base_url}{path}?token={token}``.

    Raises:
        TemplateInputInvalidError: empty value, malformed URL, token with
            characters outside the URL-safe alphabet, or a kind without links.
    """
    spec = KIND_SPECS[kind]
    if spec.link_path is None:
        raise TemplateInputInvalidError(
            f"{kind.value} emails do not carry an action link", field="token"
        )

    value = (token_or_url or "").strip()
    if not value:
        raise TemplateInputInvalidError("Token or URL is required", field="token")

    if value.startswith(("http://", "https://")):
        if not is_absolute_http_url(value):
            raise TemplateInputInvalidError(
                "Action link is not an absolute http(s) URL", field="token"
            )
        return value

    if not validate_token(value):
        raise TemplateInputInvalidError(
            "Token contains characters that are not URL-safe", field="token"
        )
    return f"{base_url.rstrip('/')}{spec.link_path}?token={quote(value, safe='-._~')}"


def static_map_url(latitude: float, longitude: float, api_key: str = "") -> str:
    """Google Static Maps image centred on the login location."""
    center = f"{latitude},{longitude}"
    query = urlencode(
        {
            "center": center,
            "zoom": 12,
            "size": "500x300",
            "markers": f"color:red|{center}",
            "key": api_key,
        }
    )
    return f"https://maps.googleapis.com/maps/api/staticmap?{query}"


class TemplateRenderer:
    def __init__(
        self,
        app_url: str = "http://localhost:3000",
        app_name: str = "TOMO",
        google_maps_api_key: str = "",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self.app_url = app_url.rstrip("/")
        self.app_name = app_name
        self._maps_key = google_maps_api_key
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(
        self,
        kind: TemplateKind,
        *,
        user_name: Optional[str] = None,
        user_image: Optional[str] = None,
        token_or_url: Optional[str] = None,
        login: Optional[LoginContext] = None,
        geo: Optional[GeoResult] = None,
    ) -> RenderedEmail:
        """Render *kind* to a complete HTML document plus its text body.

        ``token_or_url`` is required for the verify, reset and email-change
        kinds. ``login`` and ``geo`` are only read for the login notification.
        """
        spec = KIND_SPECS[kind]
        context: dict[str, Any] = {
            "app_name": self.app_name,
            "app_url": self.app_url,
            "title": spec.title,
            "subject": spec.subject,
            "expiry_hint": spec.expiry_hint,
            "user_name": (user_name or "").strip() or None,
            "user_image": user_image if is_absolute_http_url(user_image) else None,
            "year": datetime.now(timezone.utc).year,
            "action_url": None,
        }
        if spec.link_path is not None:
            context["action_url"] = resolve_action_url(
                kind, token_or_url or "", self.app_url
            )
        if kind is TemplateKind.LOGIN_NOTIFICATION:
            context.update(self._login_context(login or LoginContext(), geo))

        html = self._jinja.get_template(spec.template).render(**context)
        return RenderedEmail(subject=spec.subject, html=html, text=strip_html(html))

    def _login_context(
        self, login: LoginContext, geo: Optional[GeoResult]
    ) -> dict[str, Any]:
        geo = geo or GeoResult()
        location = geo.formatted_location or login.location or None
        map_url = None
        if geo.has_coordinates:
            map_url = static_map_url(geo.latitude, geo.longitude, self._maps_key)
        if login.user_image and is_absolute_http_url(login.user_image):
            avatar = {"user_image": login.user_image}
        else:
            avatar = {}
        return {
            **avatar,
            "login_time": format_login_time(login.timestamp),
            "ip_address": login.ip_address or None,
            "location": location,
            "device": (
                truncate(login.user_agent, USER_AGENT_DISPLAY_LIMIT)
                if login.user_agent
                else None
            ),
            "map_url": map_url,
        }
