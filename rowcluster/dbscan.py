"""DBSCAN clustering stage backed by a KD-tree."""

from __future__ import annotations

from collections import deque
from dataclasses import replace
from typing import Callable, Iterable, Optional

import numpy as np
from scipy.spatial import cKDTree

from rowcluster.pipeline import EPSILON, MINIMUM_POINTS, ImageInfo, Pipeline, PointDb

UNCLASSIFIED = -1
NOISE = -2


class DbScanPipe(Pipeline):
    """Clusters the image's contour centres with DBSCAN.

    Two points are neighbours when their Euclidean distance is strictly
    less than ``epsilon``; a point is a core point when it has at least
    ``min_points`` neighbours, itself included. Cluster ids start at 1.
    """

    def __init__(
        self,
        min_points: int = MINIMUM_POINTS,
        epsilon: float = EPSILON,
        points: Optional[Iterable[PointDb]] = None,
    ) -> None:
        super().__init__()
        if min_points < 0:
            raise ValueError("min_points must not be negative")
        self.min_points = int(min_points)
        self.epsilon = float(epsilon)
        self.points: list[PointDb] = list(points) if points is not None else []

    def cluster(self, points: Optional[Iterable[PointDb]] = None) -> list[PointDb]:
        """Cluster ``points`` (or the stored points) and return labelled copies.

        Incoming cluster ids are ignored; every point starts unclassified.
        """
        source = self.points if points is None else points
        pts = [replace(p, cluster_id=UNCLASSIFIED) for p in source]
        self.points = pts
        if not pts:
            return pts

        coords = np.array([(p.x, p.y, p.z) for p in pts], dtype=float)
        tree = cKDTree(coords)
        radius = abs(self.epsilon)
        radius_sq = self.epsilon * self.epsilon

        def neighbours(index: int) -> list[int]:
            found = np.asarray(sorted(tree.query_ball_point(coords[index], radius)), dtype=int)
            if found.size == 0:
                return []
            dist_sq = ((coords[found] - coords[index]) ** 2).sum(axis=1)
            return found[dist_sq < radius_sq].tolist()

        cluster_id = 1
        for index, point in enumerate(pts):
            if point.cluster_id == UNCLASSIFIED and self._expand(pts, index, cluster_id, neighbours):
                cluster_id += 1
        return pts

    def _expand(
        self,
        pts: list[PointDb],
        index: int,
        cluster_id: int,
        neighbours: Callable[[int], list[int]],
    ) -> bool:
        seeds = neighbours(index)
        if len(seeds) < self.min_points:
            pts[index].cluster_id = NOISE
            return False

        for seed in seeds:
            pts[seed].cluster_id = cluster_id

        pending = deque(seeds)
        while pending:
            found = neighbours(pending.popleft())
            if len(found) < self.min_points:
                continue
            for other in found:
                label = pts[other].cluster_id
                if label in (UNCLASSIFIED, NOISE):
                    if label == UNCLASSIFIED:
                        pending.append(other)
                    pts[other].cluster_id = cluster_id
        return True

    def handle(self, info: ImageInfo) -> None:
        """Cluster the contour centres in ``info.mc`` into ``info.points``."""
        centres = [PointDb(float(x), float(y), 0.0, UNCLASSIFIED) for x, y in info.mc]
        info.points = self.cluster(centres)
        super().handle(info)