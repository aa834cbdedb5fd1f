"""Slack incoming-webhook adapter for operational alerts."""

import httpx
import structlog

from notifications.channel.ops_port import OpsChannelPort

logger = structlog.get_logger(__name__)


class SlackWebhookAdapter(OpsChannelPort):
    def __init__(
        self,
        webhook_url: str,
        channel: str = "#orders-ops",
        http_client: httpx.Client | None = None,
        timeout: float = 5.0,
    ) -> None:
        self.webhook_url = webhook_url
        self.channel = channel
        self._http = http_client or httpx.Client(timeout=timeout)

    def alert(
        self,
        subject: str,
        message: str,
        context: dict | None = None,
    ) -> dict:
        fields = [{"type": "mrkdwn", "text": f"*{key}*\n{value}"} for key, value in (context or {}).items()]
        blocks = [
            {"type": "header", "text": {"type": "plain_text", "text": subject}},
            {"type": "section", "text": {"type": "mrkdwn", "text": message}},
        ]
        if fields:
            blocks.append({"type": "section", "fields": fields[:10]})

        try:
            response = self._http.post(
                self.webhook_url,
                json={"channel": self.channel, "text": f"{subject}: {message}", "blocks": blocks},
            )
        except httpx.RequestError as exc:
            logger.warning("Ops alert not delivered", subject=subject, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if response.status_code != 200:
            logger.warning("Ops alert rejected", subject=subject, status_code=response.status_code)
            return {"message_id": None, "status": "failed", "error": response.text[:200]}
        return {"message_id": None, "status": "sent"}
