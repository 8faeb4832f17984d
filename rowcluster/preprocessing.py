"""Edge detection and contour-centre extraction stage."""

from __future__ import annotations

import sys

import numpy as np
from scipy import ndimage

from rowcluster.pipeline import ImageInfo, Pipeline

_CROSS_3 = np.array([[0, 1, 0], [1, 1, 1], [0, 1, 0]], dtype=bool)
_ELLIPSE_5 = np.array(
    [
        [0, 0, 1, 0, 0],
        [1, 1, 1, 1, 1],
        [1, 1, 1, 1, 1],
        [1, 1, 1, 1, 1],
        [0, 0, 1, 0, 0],
    ],
    dtype=bool,
)
_EIGHT = np.ones((3, 3), dtype=bool)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB(A) or single-channel image to 8-bit grayscale."""
    array = np.asarray(image)
    if array.ndim == 2:
        gray = array.astype(float)
    elif array.ndim == 3 and array.shape[2] in (3, 4):
        rgb = array[..., :3].astype(float)
        gray = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114
    else:
        raise ValueError(f"unsupported image shape {array.shape}")
    if array.size == 0:
        raise ValueError("image is empty")
    return np.clip(np.rint(gray), 0, 255).astype(np.uint8)


def canny(gray: np.ndarray, low: float, high: float) -> np.ndarray:
    """Canny edge detection with 3x3 Sobel and L1 gradient; returns 0/255 uint8."""
    data = np.asarray(gray, dtype=float)
    gx = ndimage.sobel(data, axis=1, mode="mirror")
    gy = ndimage.sobel(data, axis=0, mode="mirror")
    mag = np.abs(gx) + np.abs(gy)

    padded = np.pad(mag, 1, mode="constant")
    h, w = mag.shape
    angle = (np.rad2deg(np.arctan2(gy, gx)) + 180.0) % 180.0

    def shifted(dy: int, dx: int) -> np.ndarray:
        return padded[1 + dy : 1 + dy + h, 1 + dx : 1 + dx + w]

    horizontal = (angle < 22.5) | (angle >= 157.5)
    diag_down = (angle >= 22.5) & (angle < 67.5)
    vertical = (angle >= 67.5) & (angle < 112.5)
    diag_up = (angle >= 112.5) & (angle < 157.5)

    keep = np.zeros(mag.shape, dtype=bool)
    for mask, (dy, dx) in (
        (horizontal, (0, 1)),
        (diag_down, (1, 1)),
        (vertical, (1, 0)),
        (diag_up, (1, -1)),
    ):
        local = (mag > shifted(dy, dx)) & (mag >= shifted(-dy, -dx))
        keep |= mask & local

    weak = keep & (mag > low)
    strong = keep & (mag > high)
    labels, count = ndimage.label(weak, structure=_EIGHT)
    if count == 0:
        return np.zeros(mag.shape, dtype=np.uint8)
    has_strong = np.zeros(count + 1, dtype=bool)
    has_strong[np.unique(labels[strong])] = True
    has_strong[0] = False
    return np.where(has_strong[labels], 255, 0).astype(np.uint8)


def find_centers(edges: np.ndarray) -> tuple[list[np.ndarray], list[tuple[float, float]]]:
    """Find outer contours and their centroids.

    Each contour is an array of (x, y) boundary pixels. A region that is
    only one pixel wide or tall has zero enclosed area and gets the
    centroid (-1, -1).
    """
    mask = np.asarray(edges) > 0
    labels, count = ndimage.label(mask, structure=_EIGHT)
    contours: list[np.ndarray] = []
    centers: list[tuple[float, float]] = []
    for region_slice, index in zip(ndimage.find_objects(labels), range(1, count + 1)):
        if region_slice is None:
            continue
        region = labels[region_slice] == index
        filled = ndimage.binary_fill_holes(region)
        inner = ndimage.binary_erosion(filled, structure=_EIGHT)
        ys, xs = np.nonzero(filled & ~inner)
        y0, x0 = region_slice[0].start, region_slice[1].start
        contours.append(np.column_stack((xs + x0, ys + y0)))
        if filled.shape[0] < 2 or filled.shape[1] < 2:
            centers.append((-1.0, -1.0))
            continue
        fy, fx = np.nonzero(filled)
        centers.append((float(fx.mean() + x0), float(fy.mean() + y0)))
    return contours, centers


def preprocess_image(
    image: np.ndarray, iterations: int = 3
) -> tuple[np.ndarray, list[np.ndarray], list[tuple[float, float]]]:
    """Blur, detect edges, close and erode; return (edges, contours, centres)."""
    gray = to_gray(image).astype(float)
    blurred = np.rint(ndimage.uniform_filter(gray, size=3, mode="mirror"))
    edges = canny(blurred, 120, 200) > 0

    if iterations > 0:
        edges = ndimage.binary_dilation(edges, structure=_CROSS_3, iterations=iterations)
        edges = ndimage.binary_erosion(
            edges, structure=_CROSS_3, iterations=iterations, border_value=1
        )
    erode_steps = iterations + 6
    if erode_steps > 0:
        edges = ndimage.binary_erosion(
            edges, structure=_ELLIPSE_5, iterations=erode_steps, border_value=1
        )
    processed = np.where(edges, 255, 0).astype(np.uint8)
    contours, centers = find_centers(processed)
    return processed, contours, centers


class PreprocessingPipe(Pipeline):
    """Replaces ``info.img`` with its processed edges and finds contour centres."""

    def __init__(self, iterations: int = 3) -> None:
        super().__init__()
        self.iterations = iterations

    def handle(self, info: ImageInfo) -> None:
        """Preprocess ``info`` and pass it on, even if preprocessing failed."""
        try:
            if info.img is None:
                raise ValueError("no image to preprocess")
            info.img, info.contours, info.mc = preprocess_image(info.img, self.iterations)
        except ValueError as exc:
            print(f"Preprocessing error: {exc}", file=sys.stderr)
        super().handle(info)