"""Tidings: validate user-activity events and record them as notifications.

The HTTP side lives in :mod:`tidings.api`, the delivery channel in
:mod:`tidings.channel` and the idempotent consumer in
:mod:`tidings.notifications`.
"""

from __future__ import annotations

__all__: list[str] = []
