"""
Clients package for external collaborators.

Contains:
- incident_client: HTTP client for the incident-management API
"""

from tech_radar.clients.incident_client import IncidentClient

__all__ = [
    "IncidentClient",
]
