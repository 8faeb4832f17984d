# rowcluster

`rowcluster` estimates how many rows an image contains, for example crop rows in an aerial photograph. It works in three steps:

1. **Preprocessing.** The image is converted to grayscale and blurred with a 3x3 box filter. Canny edge detection then runs with thresholds 120 and 200. A morphological close (dilation followed by erosion) is applied, and after it a further erosion. The outer contours of the remaining regions are found, along with the centroid of each one. If a region is only one pixel wide or one pixel tall, its centroid is given as `(-1, -1)`.
2. **Clustering.** The centroids are grouped with DBSCAN, which uses a KD-tree for the neighbour searches. Two points are neighbours when their distance is strictly less than `epsilon`. A point counts as a core point when it has at least `min_points` neighbours, itself included. Cluster ids start at 1, and noise points get the id -2.
3. **Output.** A table of points and their cluster ids is printed, followed by the row count. The row count is the number of distinct cluster ids. Two images are written.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Command line

The input is either a local image file or a URL:

```
rowcluster --path field.jpg
rowcluster --path https://example.com/field.jpg
```

- With `-h`/`--help`, or with no `--path`, the command prints usage information and exits with status 0.
- If the arguments are not recognised, it prints an error and exits with status 1.
- If a local file cannot be read as an image, it prints an error and exits with status 1.
- If a URL download fails, the error goes to standard error and the rest of the pipeline does not run.

The command uses `min_points = 1` and `epsilon = 50`. It writes two images to the current directory:

- `contours.jpg` holds the processed edge image.
- `centerImage.jpg` is drawn on a white background. It shows the contours, with a filled circle of radius 50 at each clustered point.

## Library use

Each stage is a `Pipeline` handler from `rowcluster.pipeline`. You chain handlers with `next`, which returns the handler you pass in. Each handler passes an `ImageInfo` on to the next one.

```python
from rowcluster.pipeline import ImageInfo
from rowcluster.preprocessing import PreprocessingPipe
from rowcluster.dbscan import DbScanPipe
from rowcluster.output import OutputPipe
from rowcluster.cli import read_image

info = ImageInfo(img=read_image("field.jpg"))
first = PreprocessingPipe()
first.next(DbScanPipe(1, 50.0)).next(OutputPipe(out_dir="results"))
first.handle(info)
```

The stages:

- `UrlDownloadPipe(timeout=10.0)` in `rowcluster.download` fetches `info.url` and decodes it into `info.img`. Its `download` method raises `DownloadError` if the request fails, if the response is empty, or if the data cannot be decoded. Its `handle` method reports the error to standard error and stops the chain.
- `PreprocessingPipe(iterations=3)` in `rowcluster.preprocessing` does two things. It replaces `info.img` with the processed edge image, and it fills in `info.contours` and `info.mc`. If preprocessing fails, it reports the error and passes `info` on unchanged.
- `DbScanPipe(min_points, epsilon, points=None)` in `rowcluster.dbscan` clusters `info.mc` into `info.points`, which is a list of `PointDb`.
- `OutputPipe(out_dir=".", stream=None)` in `rowcluster.output` writes the table to `stream`, or to standard output if `stream` is not set. If an image is present, it also writes the two images into `out_dir`.

The pieces can also be used on their own:

- `to_gray`, `canny`, `find_centers` and `preprocess_image` from `rowcluster.preprocessing`.
- `DbScanPipe.cluster(points)` from `rowcluster.dbscan`. It returns labelled copies of the points and ignores any cluster ids they already carry.
- `format_results`, `count_rows` and `render_centers` from `rowcluster.output`.
- `is_url`, `read_image` and `build_pipeline` from `rowcluster.cli`. `build_pipeline` builds the same chain that the command uses.