"""Fake Slack adapter: records operational alerts for testing."""

from uuid import uuid4

from notifications.channel.ops_port import OpsChannelPort


class FakeSlackAdapter(OpsChannelPort):
    """Alert adapter that records messages in memory for test assertions."""

    def __init__(self, channel: str = "#orders-ops"):
        self.channel = channel
        self.sent_alerts: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Slack delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Slack delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def alert(
        self,
        subject: str,
        message: str,
        context: dict | None = None,
    ) -> dict:
        if not self.should_succeed:
            return {
                "message_id": None,
                "status": "failed",
                "error": self.failure_reason,
            }

        message_id = f"slack-{uuid4().hex[:12]}"
        self.sent_alerts.append(
            {
                "message_id": message_id,
                "channel": self.channel,
                "subject": subject,
                "message": message,
                "context": context or {},
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent alerts (useful between tests)."""
        self.sent_alerts.clear()
        self.should_succeed = True
        self.failure_reason = "Slack delivery failed"
