"""Chain-of-responsibility stages and the data passed between them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

MINIMUM_POINTS = 1
"""Default minimum number of neighbours for a core point."""

EPSILON = 50.0
"""Default neighbourhood radius for clustering."""


@dataclass
class PointDb:
    """A point in space with the cluster it was assigned to."""

    x: float
    y: float
    z: float = 0.0
    cluster_id: int = -1  # unclassified


@dataclass
class ImageInfo:
    """Everything a pipeline run knows about one image.

    ``img`` is a numpy array: two-dimensional for single-channel images,
    otherwise height x width x channels in RGB(A) order.
    """

    img: Optional[np.ndarray] = None
    contours: list[Any] = field(default_factory=list)
    mc: list[tuple[float, float]] = field(default_factory=list)
    points: list[PointDb] = field(default_factory=list)
    url: str = ""


class Pipeline:
    """A pipeline stage that hands the image on to the next stage, if any."""

    def __init__(self) -> None:
        self._next: Optional[Pipeline] = None

    def next(self, handler: Pipeline) -> Pipeline:
        """Set the stage that follows this one and return it, for chaining."""
        self._next = handler
        return handler

    def handle(self, info: ImageInfo) -> None:
        """Pass ``info`` to the following stage."""
        if self._next is not None:
            self._next.handle(info)