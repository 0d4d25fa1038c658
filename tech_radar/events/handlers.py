"""
Event handlers wiring domain events to external collaborators.
"""

import logging
import queue
import threading
from typing import Any, Dict, Optional

from tech_radar.clients.incident_client import IncidentClient
from tech_radar.config.settings import Settings, get_settings
from tech_radar.events.bus import EventBus
from tech_radar.models.enums import StrategicValue
from tech_radar.models.events import TechnologyDeprecated

logger = logging.getLogger(__name__)

INCIDENT_STRATEGIC_VALUES = (StrategicValue.HIGH, StrategicValue.CRITICAL)
INCIDENT_TAGS = ["tech-radar", "deprecation", "strategic-technology"]

_STOP = object()


class IncidentHandler:
    """
    Opens an incident when a strategically important technology is
    deprecated or moved to hold.

    `handle` only enqueues; a daemon worker delivers requests to the
    incident API, so publishers never wait on the network. When the
    pending queue is full the request is dropped with a warning. Delivery
    failures are logged and swallowed; the lifecycle change that produced
    the event is already committed and is never rolled back.
    """

    def __init__(
        self,
        client: Optional[IncidentClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self._client = client
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=self.settings.incident_queue_size)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def client(self) -> IncidentClient:
        if self._client is None:
            self._client = IncidentClient(settings=self.settings)
        return self._client

    def register(self, bus: EventBus) -> None:
        bus.subscribe(TechnologyDeprecated, self.handle)

    def build_request(self, event: TechnologyDeprecated) -> Dict[str, Any]:
        return {
            "title": f"Critical Technology Deprecated: {event.name}",
            "description": f"{event.name} has been moved to HOLD status. Reason: {event.reason}",
            "severity": "medium",
            "source": self.settings.incident_source,
            "tags": list(INCIDENT_TAGS),
            "metadata": {
                "technologyId": event.technology_id,
                "strategicValue": event.strategic_value.value,
                "adoptionLevel": event.adoption_level,
            },
        }

    def handle(self, event: TechnologyDeprecated) -> bool:
        """
        Queue an incident for delivery.

        Returns:
            True if a request was queued
        """
        if event.strategic_value not in INCIDENT_STRATEGIC_VALUES:
            return False

        self._ensure_worker()
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.warning(
                f"Incident queue full, dropping incident for {event.name}",
                extra={"technology_id": event.technology_id},
            )
            return False
        return True

    def deliver(self, event: TechnologyDeprecated) -> Optional[Dict[str, Any]]:
        """Send one incident request synchronously."""
        try:
            response = self.client.create_incident(**self.build_request(event))
            logger.info(
                f"Incident created for deprecated technology {event.name}",
                extra={"technology_id": event.technology_id},
            )
            return response
        except Exception as e:
            logger.error(
                f"Failed to create incident for {event.name}: {e}",
                extra={"technology_id": event.technology_id},
            )
            return None

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._run, name="tech-radar-incidents", daemon=True)
                self._thread.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self.deliver(item)
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued request has been delivered or failed."""
        self._queue.join()

    def shutdown(self, timeout: float = 5.0) -> None:
        """Deliver what is queued, then stop the worker."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None or not thread.is_alive():
            return
        self._queue.put(_STOP)
        thread.join(timeout=timeout)
