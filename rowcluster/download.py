"""Pipeline stage that fetches the input image over HTTP."""

from __future__ import annotations

import io
import sys

import numpy as np
import requests
from PIL import Image

from rowcluster.pipeline import ImageInfo, Pipeline

_NATIVE_MODES = {"1", "L", "RGB", "RGBA", "I", "I;16", "F"}


class DownloadError(Exception):
    """Raised when an image cannot be fetched or decoded."""


def _decode(data: bytes) -> np.ndarray:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            if image.mode not in _NATIVE_MODES:
                has_alpha = "A" in image.mode or "transparency" in image.info
                image = image.convert("RGBA" if has_alpha else "RGB")
            array = np.array(image)
    except (OSError, ValueError) as exc:
        raise DownloadError(f"cannot decode image: {exc}") from exc
    if array.size == 0:
        raise DownloadError("decoded image is empty")
    return array


class UrlDownloadPipe(Pipeline):
    """Downloads ``info.url`` and stores the decoded image in ``info.img``."""

    def __init__(self, timeout: float = 10.0) -> None:
        super().__init__()
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout

    def download(self, info: ImageInfo) -> np.ndarray:
        """Fetch and decode the image at ``info.url``; raise DownloadError on failure."""
        try:
            response = requests.get(info.url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DownloadError(f"request failed: {exc}") from exc
        if not response.content:
            raise DownloadError("downloaded data is empty")
        info.img = _decode(response.content)
        return info.img

    def handle(self, info: ImageInfo) -> None:
        """Download the image and continue only if that succeeded."""
        try:
            self.download(info)
        except DownloadError as exc:
            print(f"{exc}", file=sys.stderr)
            print(f"Image download failed for URL: {info.url}", file=sys.stderr)
            return
        super().handle(info)