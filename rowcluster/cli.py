"""Command line entry point: cluster contour centres of an image into rows."""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from PIL import Image

from rowcluster.dbscan import DbScanPipe
from rowcluster.download import UrlDownloadPipe
from rowcluster.output import OutputPipe
from rowcluster.pipeline import EPSILON, MINIMUM_POINTS, ImageInfo, Pipeline
from rowcluster.preprocessing import PreprocessingPipe

_URL = re.compile(r"(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w .-]*)/?", re.IGNORECASE)


def is_url(text: str) -> bool:
    """Whether ``text`` looks like a URL rather than a file path."""
    return _URL.fullmatch(text) is not None


def read_image(path: str) -> Optional[np.ndarray]:
    """Read an image as an RGB array, or None if it cannot be read."""
    if not Path(path).is_file():
        return None
    try:
        with Image.open(path) as image:
            array = np.array(image.convert("RGB"))
    except (OSError, ValueError):
        return None
    return array if array.size else None


def build_pipeline(from_url: bool) -> Pipeline:
    """Chain the stages and return the first one."""
    stages: list[Pipeline] = [
        PreprocessingPipe(),
        DbScanPipe(MINIMUM_POINTS, EPSILON),
        OutputPipe(),
    ]
    if from_url:
        stages.insert(0, UrlDownloadPipe())
    for current, following in zip(stages, stages[1:]):
        current.next(following)
    return stages[0]


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rowcluster", description="Allowed options", add_help=False
    )
    parser.add_argument("-h", "--help", action="store_true", help="Print usage information")
    parser.add_argument("--path", help="Image file path or URL")
    return parser


class _ArgumentError(Exception):
    pass


class _QuietParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise _ArgumentError(message)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pipeline on the image given by ``--path``."""
    base = _parser()
    parser = _QuietParser(
        prog=base.prog, description=base.description, add_help=False, parents=[base]
    )
    try:
        args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    except _ArgumentError:
        print("Error parsing command line arguments. Use --help for usage.", file=sys.stderr)
        return 1

    if args.help or args.path is None:
        print(base.format_help())
        return 0

    info = ImageInfo()
    if is_url(args.path):
        print("Processing input as URL...")
        info.url = args.path
        build_pipeline(True).handle(info)
    else:
        print("Processing input as file path...")
        image = read_image(args.path)
        if image is None:
            print(f"Failed to read image from path: {args.path}", file=sys.stderr)
            return 1
        info.img = image
        build_pipeline(False).handle(info)
    return 0


if __name__ == "__main__":
    sys.exit(main())