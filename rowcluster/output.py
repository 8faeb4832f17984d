"""Stage that reports the clusters and writes result images."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO

import numpy as np
from PIL import Image, ImageDraw
from scipy import ndimage

from rowcluster.pipeline import ImageInfo, Pipeline, PointDb

_CONTOUR_COLOR = (0, 151, 167)
_RADIUS = 50


def count_rows(points: Iterable[PointDb]) -> int:
    """Number of distinct cluster ids among ``points``."""
    return len({p.cluster_id for p in points})


def format_results(points: list[PointDb]) -> str:
    """The results table followed by the row count."""
    lines = [
        f"Number of points: {len(points)}",
        "     x         y         z       cluster_id",
        "---------------------------------------------",
    ]
    lines.extend(f"{p.x:8.2f} {p.y:8.2f} {p.z:8.2f}: {p.cluster_id:5d}" for p in points)
    lines.append(f"Row count is : {count_rows(points)}")
    return "\n".join(lines) + "\n"


def render_centers(info: ImageInfo) -> np.ndarray:
    """Draw contours and cluster points on a white RGB canvas of the image's size."""
    if info.img is None:
        raise ValueError("no image to render")
    height, width = np.asarray(info.img).shape[:2]

    outline = np.zeros((height, width), dtype=bool)
    for contour in info.contours:
        pts = np.asarray(contour, dtype=int).reshape(-1, 2)
        inside = (pts[:, 0] >= 0) & (pts[:, 0] < width) & (pts[:, 1] >= 0) & (pts[:, 1] < height)
        pts = pts[inside]
        outline[pts[:, 1], pts[:, 0]] = True
    if outline.any():
        outline = ndimage.binary_dilation(outline)
    canvas = np.full((height, width, 3), 255, dtype=np.uint8)
    canvas[outline] = _CONTOUR_COLOR

    image = Image.fromarray(canvas)
    draw = ImageDraw.Draw(image)
    step = 3
    for point in info.points:
        cx, cy = int(point.x), int(point.y)
        color = ((step * 9) % 255, (step * 6) % 255, 255)
        draw.ellipse((cx - _RADIUS, cy - _RADIUS, cx + _RADIUS, cy + _RADIUS), fill=color)
        step += 7
    return np.array(image)


def _as_uint8(img: np.ndarray) -> np.ndarray:
    array = np.asarray(img)
    if array.dtype == bool:
        return np.where(array, 255, 0).astype(np.uint8)
    return np.clip(array, 0, 255).astype(np.uint8)


class OutputPipe(Pipeline):
    """Prints the clustering results and writes contours.jpg and centerImage.jpg."""

    def __init__(self, out_dir: str | Path = ".", stream: Optional[TextIO] = None) -> None:
        super().__init__()
        self.out_dir = Path(out_dir)
        self.stream = stream

    def handle(self, info: ImageInfo) -> None:
        """Report, write images, and pass ``info`` on."""
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(format_results(info.points))
        if info.img is not None:
            drawing = render_centers(info)
            Image.fromarray(_as_uint8(info.img)).convert("RGB").save(self.out_dir / "contours.jpg")
            Image.fromarray(drawing).save(self.out_dir / "centerImage.jpg")
        super().handle(info)