import io

import numpy as np
import pytest
import responses
from PIL import Image

from rowcluster.cli import build_pipeline, is_url, main, read_image
from rowcluster.pipeline import ImageInfo


def _png_bytes(arr):
    buffer = io.BytesIO()
    Image.fromarray(arr).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.mark.parametrize(
    "text,expected",
    [
        ("http://example.com/a.jpg", True),
        ("https://example.com", True),
        ("example.com/img.png", True),
        ("/tmp/picture", False),
        ("no_dot_here", False),
    ],
)
def test_is_url(text, expected):
    assert is_url(text) is expected


def test_read_image_missing(tmp_path):
    assert read_image(str(tmp_path / "absent.png")) is None


def test_read_image_roundtrip(tmp_path):
    arr = np.zeros((5, 7, 3), dtype=np.uint8)
    arr[1, 2] = (10, 20, 30)
    path = tmp_path / "a.png"
    Image.fromarray(arr).save(path)
    loaded = read_image(str(path))
    assert np.array_equal(loaded, arr)


def test_read_image_not_an_image(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"not an image")
    assert read_image(str(path)) is None


def test_build_pipeline_for_file_runs_through_to_output(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    info = ImageInfo(img=np.zeros((40, 40, 3), dtype=np.uint8))
    build_pipeline(False).handle(info)
    assert info.points == []
    assert "Number of points: 0" in capsys.readouterr().out
    assert (tmp_path / "centerImage.jpg").exists()


def test_build_pipeline_for_url_downloads_first(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    url = "http://example.com/field.png"
    body = _png_bytes(np.zeros((40, 40, 3), dtype=np.uint8))
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, body=body, status=200, content_type="image/png")
        info = ImageInfo(url=url)
        build_pipeline(True).handle(info)
    assert info.points == []
    assert "Number of points: 0" in capsys.readouterr().out
    assert (tmp_path / "centerImage.jpg").exists()


def test_main_without_path_prints_usage(capsys):
    assert main([]) == 0
    assert "--path" in capsys.readouterr().out


def test_main_bad_option(capsys):
    assert main(["--bogus"]) == 1
    assert "Error parsing" in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    assert main(["--path", str(tmp_path / "missing")]) == 1
    assert "Failed to read image" in capsys.readouterr().err


def test_main_runs_on_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "img.png"
    Image.fromarray(np.zeros((40, 40, 3), dtype=np.uint8)).save(path)
    assert main(["--path", str(path)]) == 0
    out = capsys.readouterr().out
    assert "Number of points: 0" in out
    assert (tmp_path / "centerImage.jpg").exists()