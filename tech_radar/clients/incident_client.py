"""
Incident API client.

Forwards incident-creation requests to the incident-management
collaborator. Only the IncidentHandler calls it; failures surface as
httpx errors and are handled there.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from tech_radar.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class IncidentClient:
    """
    HTTP client for the incident-management API.

    Provides a single operation, create_incident, posted to /incidents.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        retry_attempts: int = 2,
        transport: Optional[httpx.BaseTransport] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the incident client.

        Args:
            base_url: Base URL of the incident API
            timeout: Request timeout in seconds
            retry_attempts: Number of retries after the first attempt
            transport: Optional httpx transport (tests use MockTransport)
            settings: Settings supplying the default base URL and timeout
        """
        settings = settings or get_settings()
        self.base_url = base_url or settings.incident_api_base_url
        self.timeout = timeout or settings.incident_api_timeout
        self.retry_attempts = retry_attempts
        self._transport = transport
        self._session: Optional[httpx.Client] = None

    def _get_session(self) -> httpx.Client:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._session

    def _request(self, method: str, endpoint: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make an HTTP request with retry logic."""
        session = self._get_session()

        last_error: Optional[Exception] = None
        for attempt in range(self.retry_attempts + 1):
            try:
                response = session.request(method, endpoint, json=data)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPError as e:
                last_error = e
                if attempt < self.retry_attempts:
                    wait_time = 2 ** attempt
                    logger.warning(
                        f"Incident request failed (attempt {attempt + 1}/{self.retry_attempts + 1}), "
                        f"retrying in {wait_time}s: {e}"
                    )
                    time.sleep(wait_time)

        raise last_error

    def create_incident(
        self,
        title: str,
        description: str,
        severity: str,
        source: str,
        tags: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Open an incident.

        Args:
            title: Incident title
            description: Incident description
            severity: Incident severity (low, medium, high, critical)
            source: Originating system
            tags: Free-form tags
            metadata: Structured context for responders

        Returns:
            Response JSON from the incident API
        """
        payload = {
            "title": title,
            "description": description,
            "severity": severity,
            "source": source,
            "tags": tags or [],
            "metadata": metadata or {},
        }
        logger.info(f"Creating incident: {title}", extra={"source": source, "severity": severity})
        return self._request("POST", "/incidents", data=payload)

    def close(self):
        """Close the HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None
