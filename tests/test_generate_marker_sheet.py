"""
Tests for the sample sheet generator.

Run with: pytest tests/test_generate_marker_sheet.py -v
"""
import importlib
import json
import sys

import pytest

from generate_marker_sheet import generate_marker_sheet


class TestGenerateMarkerSheet:
    """Tests for generate_marker_sheet()."""

    def test_default_dest(self, tmp_path):
        pdf = tmp_path / "sheet.pdf"
        pos_path = generate_marker_sheet(str(pdf), count=3)

        assert pdf.exists()
        assert pos_path == (tmp_path / "dest" / "pos.json").resolve()
        data = json.loads(pos_path.read_text())
        assert sorted(data) == ["0", "1", "2"]
        assert all(entry["page"] == 1 for entry in data.values())

    def test_markers_in_reading_order(self, tmp_path):
        pos_path = generate_marker_sheet(str(tmp_path / "sheet.pdf"), dest=tmp_path / "out", count=4, page_size="letter")
        data = json.loads(pos_path.read_text())

        tops = [data[str(i)]["y"][0] for i in range(4)]
        assert tops == sorted(tops)
        # 20mm page margin
        assert all(entry["x"][0] == 2.0 for entry in data.values())

    def test_long_sheet_spans_pages(self, tmp_path):
        pos_path = generate_marker_sheet(str(tmp_path / "sheet.pdf"), count=40, size=30, style="aruco", outset=4)
        data = json.loads(pos_path.read_text())

        assert len(data) == 40
        assert max(entry["page"] for entry in data.values()) > 1

    def test_merge_keeps_previous_run(self, tmp_path):
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "pos.json").write_text(json.dumps({"earlier": {"page": 1, "x": [0, 1], "y": [0, 1]}}))

        pos_path = generate_marker_sheet(str(tmp_path / "sheet.pdf"), dest=dest, count=1, merge=True)
        data = json.loads(pos_path.read_text())

        assert set(data) == {"earlier", "0"}


class TestMissingDependencies:
    """Tests for the install hint printed when a dependency is missing."""

    def test_missing_opencv_prints_install_hint(self, monkeypatch, capsys):
        for name in ("generate_marker_sheet", "marker_positions", "marker_render"):
            monkeypatch.delitem(sys.modules, name, raising=False)
        # A None entry makes "import cv2" raise ImportError
        monkeypatch.setitem(sys.modules, "cv2", None)

        with pytest.raises(SystemExit) as exc:
            importlib.import_module("generate_marker_sheet")

        assert exc.value.code == 1
        assert "opencv-python" in capsys.readouterr().out
