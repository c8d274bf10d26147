"""Command line entry point end to end, without a host window."""
import json
import os
import sys

import cv2
import pytest

from conftest import build_timeline
from timeline_locator import main as cli
from timeline_locator.vision.metadata import CaptureMetadata, save_png_with_metadata
from timeline_locator.vision.types import DetectionStatus


@pytest.fixture
def run_cli(tmp_path, monkeypatch, capsys, restore_root_logger):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.delenv("PROGRAMDATA", raising=False)
    for name in ("TL_STYLE_CONFIG", "STYLE_CONFIG", "TL_STYLE_OVERRIDE", "STYLE_OVERRIDE", "TL_DEFAULT_ZOOM"):
        monkeypatch.delenv(name, raising=False)
    config = str(tmp_path / "config" / "config.ini")

    def run(*args):
        code = cli.main(["--config", config, *args])
        return code, capsys.readouterr().out

    return run


def save_capture(path, style, zoom=1000, cursor_x=293):
    bmp = build_timeline(style, cursor_x=cursor_x)
    meta = CaptureMetadata(zoom=zoom, status=DetectionStatus.SUCCESS, style=style)
    return save_png_with_metadata(path, bmp, meta)


def test_analyze_saved_capture(run_cli, tmp_path, style):
    png = save_capture(tmp_path / "capture.png", style)
    annotated = tmp_path / "annotated.png"
    code, out = run_cli("analyze", str(png), "--annotate", str(annotated))
    assert code == 0
    doc = json.loads(out)
    assert doc["status"] == "success"
    assert doc["cursor"] == {"x": 293, "y": 419, "width": 1, "height": 112}
    img = cv2.imread(str(annotated))
    assert img.shape == (600, 800, 3)


def test_analyze_zoom_override(run_cli, tmp_path, style):
    png = save_capture(tmp_path / "capture.png", style)
    code, out = run_cli("analyze", str(png), "--zoom", "2000")
    assert code == 1
    assert json.loads(out)["status"] == "zoom_bar_not_found"


def test_analyze_without_metadata_fails(run_cli, tmp_path, style):
    png = tmp_path / "plain.png"
    cv2.imwrite(str(png), build_timeline(style).bgr)
    code, _ = run_cli("analyze", str(png))
    assert code == 1


def test_style_prints_defaults(run_cli):
    code, out = run_cli("style")
    assert code == 0
    doc = json.loads(out)
    assert doc["scroll_bar_size"] == 20
    assert doc["background"] == "#202020"


@pytest.mark.skipif(os.name == "nt", reason="no host windows off Windows")
def test_locate_without_host(run_cli):
    code, out = run_cli("locate", "--zoom", "1000")
    assert code == 1
    assert json.loads(out) == {"status": "invalid"}
