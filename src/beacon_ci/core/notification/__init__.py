# src/beacon_ci/core/notification/__init__.py
"""
Notificação de falhas do Beacon CI.

    - dispatcher → NotificationRule, Notification e NotificationDispatcher
    - transport  → entrega via webhook HTTP (httpx)

Apenas falhas no branch protegido geram alerta; a entrega é fire-and-forget.
"""

from .dispatcher import (
    NOTIFICATION_MESSAGES,
    Notification,
    NotificationDispatcher,
    NotificationRule,
    action_url,
)
from .transport import HttpxWebhookTransport, WebhookTransport

__all__ = [
    "NOTIFICATION_MESSAGES",
    "Notification",
    "NotificationDispatcher",
    "NotificationRule",
    "action_url",
    "HttpxWebhookTransport",
    "WebhookTransport",
]
