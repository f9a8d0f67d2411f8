"""Outbound transactional mail — password reset links.

Learn: The auth flow only needs one capability from the mail provider:
send_password_reset(to_email, link, name) -> bool. HttpMailer implements
it against a JSON mail API (Resend/Postmark style: POST with a bearer key)
using httpx. Failures are logged and reported as False, never raised, so
the forgot-password handler decides what the client sees.

No retries: a failed send is surfaced to the caller immediately.
"""

import html
from typing import Optional, Protocol

import httpx
import structlog

from inkpress.config import Settings

logger = structlog.get_logger()

RESET_SUBJECT = "Reset your Inkpress password"


class Mailer(Protocol):
    async def send_password_reset(self, to_email: str, link: str, name: str) -> bool:
        ...


def render_reset_email(link: str, name: str, expire_minutes: int) -> tuple[str, str]:
    """Build the (text, html) bodies of the reset email."""
    text = (
        f"Hi {name},\n\n"
        "We received a request to reset your password. Open the link below "
        f"to choose a new one. It expires in {expire_minutes} minutes.\n\n"
        f"{link}\n\n"
        "If you didn't ask for this, you can ignore this email."
    )
    # The name is whatever was typed at signup
    safe_name = html.escape(name)
    safe_link = html.escape(link, quote=True)
    body = (
        f"<p>Hi {safe_name},</p>"
        "<p>We received a request to reset your password. "
        f"The link below expires in {expire_minutes} minutes.</p>"
        f'<p><a href="{safe_link}">Reset password</a></p>'
        "<p>If you didn't ask for this, you can ignore this email.</p>"
    )
    return text, body


class HttpMailer:
    """Sends mail through an HTTP mail API."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        self._client = client

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.mail_timeout_seconds)

    async def send_password_reset(self, to_email: str, link: str, name: str) -> bool:
        log = logger.bind(to=to_email)

        if not self.settings.mail_api_url:
            # Nothing to send through, only acceptable while developing
            log.warning("mail.not_configured")
            return self.settings.is_development

        text, html_body = render_reset_email(
            link, name, self.settings.reset_token_expire_minutes
        )
        message = {
            "from": self.settings.mail_from,
            "to": [to_email],
            "subject": RESET_SUBJECT,
            "text": text,
            "html": html_body,
        }
        headers = {"Authorization": f"Bearer {self.settings.mail_api_key}"}

        client = self._client or self._build_client()
        try:
            resp = await client.post(
                self.settings.mail_api_url, json=message, headers=headers
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("mail.rejected", status=e.response.status_code)
            return False
        except httpx.HTTPError as e:
            log.error("mail.transport_error", error=str(e))
            return False
        finally:
            if self._client is None:
                await client.aclose()

        log.info("mail.sent", subject=RESET_SUBJECT)
        return True
