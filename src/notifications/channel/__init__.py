"""Operational alert channel registry.

Provides singleton access to the alert adapter. Uses the fake Slack adapter
by default; set ``OPS_CHANNEL_ADAPTER=slack`` with ``OPS_SLACK_WEBHOOK_URL``
in production.
"""

import os
import threading

from notifications.channel.ops_port import OpsChannelPort

_ops_channel: OpsChannelPort | None = None
_ops_channel_lock = threading.Lock()


def _build_ops_channel(adapter: str) -> OpsChannelPort:
    channel = os.environ.get("OPS_SLACK_CHANNEL", "#orders-ops")
    if adapter == "fake":
        from notifications.channel.fake_slack import FakeSlackAdapter

        return FakeSlackAdapter(channel=channel)
    if adapter == "slack":
        from notifications.channel.slack_webhook import SlackWebhookAdapter

        return SlackWebhookAdapter(os.environ["OPS_SLACK_WEBHOOK_URL"], channel=channel)
    raise ValueError(f"Unknown ops channel adapter: {adapter}")


def get_ops_channel() -> OpsChannelPort:
    """Return the configured operational alert adapter (singleton)."""
    global _ops_channel
    if _ops_channel is None:
        with _ops_channel_lock:
            if _ops_channel is None:
                _ops_channel = _build_ops_channel(os.environ.get("OPS_CHANNEL_ADAPTER", "fake"))
    return _ops_channel


def set_ops_channel(channel: OpsChannelPort) -> None:
    """Override the active alert adapter (useful for tests)."""
    global _ops_channel
    with _ops_channel_lock:
        _ops_channel = channel


def reset_ops_channel():
    """Reset the alert adapter singleton (useful for testing)."""
    global _ops_channel
    with _ops_channel_lock:
        _ops_channel = None
