"""
Events package.

Contains:
- bus: In-process event bus
- handlers: Subscribers forwarding events to external collaborators
"""

from tech_radar.events.bus import EventBus
from tech_radar.events.handlers import IncidentHandler

__all__ = [
    "EventBus",
    "IncidentHandler",
]
