"""Activity event ingress resources.

Usage
-----
Import the resource for route registration::

    from tidings.api.events import ActivityEventResource
"""

from __future__ import annotations

from .resources import ACCEPTED_MESSAGE, ActivityEventResource
from .validation import validate_activity_event

__all__ = ["ACCEPTED_MESSAGE", "ActivityEventResource", "validate_activity_event"]
