"""Row counting in images via edge detection, contour centroids and DBSCAN clustering."""

__version__ = "0.1.0"