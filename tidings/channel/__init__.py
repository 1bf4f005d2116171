"""Delivery channel between the ingress service and the consumer."""

from __future__ import annotations

from ._broker import ensure_broker_configured
from .errors import PublishError
from .protocol import ACTIVITY_ACTOR_NAME, EventPublisher
from .publisher import DramatiqPublisher

__all__ = [
    "ACTIVITY_ACTOR_NAME",
    "DramatiqPublisher",
    "EventPublisher",
    "PublishError",
    "ensure_broker_configured",
]
