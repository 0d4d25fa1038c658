"""
Layout engine.

Turns a snapshot into 2-D radar coordinates. The canvas is split into four
90 degree sectors (clockwise on screen, y grows downward) and four
concentric bands:

    languages-frameworks  [0, pi/2)        adopt   0    - 0.25 R
    tools                 [pi/2, pi)       trial   0.25 - 0.50 R
    platforms             [pi, 3pi/2)      assess  0.50 - 0.75 R
    techniques            [3pi/2, 2pi)     hold    0.75 - 1.00 R

with R = min(width, height) / 2 - padding. Angle and radius are drawn
from an inset interval so every point lies strictly inside its sector
and band.
"""

import hashlib
import logging
import math
from typing import Dict, Optional, Tuple

import numpy as np

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import ValidationError
from tech_radar.models.enums import LayoutMode, Quadrant, Ring
from tech_radar.models.layout import (
    LayoutMetadata,
    PlacedTechnology,
    QuadrantLayout,
    RadarLayout,
    RingLegend,
)
from tech_radar.models.snapshot import RadarSnapshot
from tech_radar.models.technology import TechnologyEntry

logger = logging.getLogger(__name__)

QUADRANT_ANGLES: Dict[Quadrant, Tuple[float, float]] = {
    Quadrant.LANGUAGES_FRAMEWORKS: (0.0, math.pi / 2),
    Quadrant.TOOLS: (math.pi / 2, math.pi),
    Quadrant.PLATFORMS: (math.pi, 3 * math.pi / 2),
    Quadrant.TECHNIQUES: (3 * math.pi / 2, 2 * math.pi),
}

# Outer radius of each ring as a fraction of the max radius, inside out.
RING_FRACTIONS = [
    (Ring.ADOPT, 0.25),
    (Ring.TRIAL, 0.50),
    (Ring.ASSESS, 0.75),
    (Ring.HOLD, 1.00),
]

ANGLE_INSET = 0.05
RADIUS_INSET = 0.10


def seed_for(technology_id: str) -> int:
    """Stable 64-bit seed derived from an entry id."""
    return int(hashlib.sha256(technology_id.encode("utf-8")).hexdigest()[:16], 16)


class LayoutEngine:
    """
    Computes radar layouts.

    In random mode every call draws fresh coordinates; in seeded mode each
    entry's RNG is seeded from its id so the output is identical across
    calls.
    """

    def __init__(self, settings: Optional[Settings] = None, mode: Optional[LayoutMode] = None):
        self.settings = settings or get_settings()
        self.mode = LayoutMode(mode) if mode is not None else self.settings.layout_mode

    def _check_canvas(self, width: int, height: int) -> None:
        minimum = self.settings.min_canvas_size
        if width < minimum or height < minimum:
            raise ValidationError(
                [f"Canvas must be at least {minimum}x{minimum} (got {width}x{height})"]
            )

    def ring_bands(self, max_radius: float) -> Dict[Ring, Tuple[float, float]]:
        """(inner, outer) radius per ring."""
        bands = {}
        inner = 0.0
        for ring, fraction in RING_FRACTIONS:
            outer = max_radius * fraction
            bands[ring] = (inner, outer)
            inner = outer
        return bands

    def _rng_for(self, technology: TechnologyEntry, shared: np.random.Generator) -> np.random.Generator:
        if self.mode == LayoutMode.SEEDED:
            return np.random.default_rng(seed_for(technology.id))
        return shared

    def place(
        self,
        technology: TechnologyEntry,
        center: Tuple[float, float],
        bands: Dict[Ring, Tuple[float, float]],
        rng: np.random.Generator,
    ) -> PlacedTechnology:
        start, end = QUADRANT_ANGLES[technology.quadrant]
        inner, outer = bands[technology.ring]
        u_angle, u_radius = rng.random(2)

        angle = start + (ANGLE_INSET + (1 - 2 * ANGLE_INSET) * u_angle) * (end - start)
        radius = inner + (RADIUS_INSET + (1 - 2 * RADIUS_INSET) * u_radius) * (outer - inner)

        return PlacedTechnology(
            id=technology.id,
            name=technology.name,
            ring=technology.ring,
            movement=technology.movement,
            quadrant=technology.quadrant,
            x=float(center[0] + radius * math.cos(angle)),
            y=float(center[1] + radius * math.sin(angle)),
        )

    def layout(
        self,
        snapshot: RadarSnapshot,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> RadarLayout:
        """
        Compute the layout of a snapshot.

        Raises:
            ValidationError: canvas smaller than the configured minimum
        """
        width = width or self.settings.canvas_width
        height = height or self.settings.canvas_height
        self._check_canvas(width, height)

        center = (width / 2, height / 2)
        max_radius = min(width, height) / 2 - self.settings.layout_padding
        bands = self.ring_bands(max_radius)
        shared = np.random.default_rng()

        quadrants = {
            quadrant: QuadrantLayout(
                key=quadrant,
                name=self.settings.quadrant_names.get(quadrant.value, quadrant.value),
                start_angle=start,
                end_angle=end,
            )
            for quadrant, (start, end) in QUADRANT_ANGLES.items()
        }
        for technology in snapshot.technologies:
            placed = self.place(technology, center, bands, self._rng_for(technology, shared))
            quadrants[technology.quadrant].technologies.append(placed)

        rings = [
            RingLegend(
                key=ring,
                name=self.settings.ring_names.get(ring.value, ring.value),
                inner_radius=bands[ring][0],
                radius=bands[ring][1],
                color=self.settings.ring_colors.get(ring.value, "#cccccc"),
            )
            for ring, _ in RING_FRACTIONS
        ]

        logger.debug(
            f"Laid out {len(snapshot.technologies)} technologies on {width}x{height}",
            extra={"snapshot_id": snapshot.id, "mode": self.mode.value},
        )
        return RadarLayout(
            quadrants=list(quadrants.values()),
            rings=rings,
            metadata=LayoutMetadata(
                title=snapshot.title,
                date=snapshot.date.date().isoformat(),
                version=snapshot.version,
                width=width,
                height=height,
                center_x=center[0],
                center_y=center[1],
                max_radius=max_radius,
            ),
        )
