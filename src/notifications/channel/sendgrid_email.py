"""SendGrid email adapter: delivers through the SendGrid v3 Mail Send API.

SendGrid answers 202 with an ``X-Message-Id`` header on success. Every other
outcome, including transport errors, is reported as a failed result so the
dispatcher can mark the notification failed and leave it for retry.
"""

import httpx
import structlog

from notifications.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)

SENDGRID_API_BASE = "https://api.sendgrid.com"
_SEND_ENDPOINT = "/v3/mail/send"


class SendGridEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str,
        from_email: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.from_email = from_email
        self._client = httpx.Client(
            base_url=SENDGRID_API_BASE,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def _build_payload(self, to: str, subject: str, body: str, html_body: str | None) -> dict:
        content = [{"type": "text/plain", "value": body}]
        if html_body:
            content.append({"type": "text/html", "value": html_body})
        return {
            "personalizations": [{"to": [{"email": to}], "subject": subject}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": content,
        }

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        try:
            response = self._client.post(_SEND_ENDPOINT, json=self._build_payload(to, subject, body, html_body))
        except httpx.HTTPError as exc:
            logger.warning("SendGrid request failed", error=str(exc))
            return {"message_id": None, "status": "failed", "error": f"SendGrid unreachable: {exc}"}

        if response.status_code in (200, 202):
            return {"message_id": response.headers.get("X-Message-Id"), "status": "sent"}

        if response.status_code == 429:
            error = "SendGrid rate limit exceeded"
        elif response.status_code in (401, 403):
            error = "SendGrid authentication failed"
        else:
            error = f"SendGrid returned {response.status_code}"
        logger.warning("SendGrid rejected message", status_code=response.status_code, body=response.text[:500])
        return {"message_id": None, "status": "failed", "error": error}

    def close(self) -> None:
        self._client.close()
