"""
Tests for marker drawing helpers.

Run with: pytest tests/test_marker_render.py -v
"""
import io

import numpy as np
import pytest
from reportlab.pdfgen import canvas

from marker_render import (
    ARUCO_GRID,
    aruco_bits,
    draw_aruco_marker,
    draw_quiet_zone,
    draw_solid_marker,
)


class TestArucoBits:
    """Tests for the ArUco cell grid."""

    def test_grid_shape(self):
        bits = aruco_bits(0)
        assert bits.shape == (ARUCO_GRID, ARUCO_GRID)

    def test_border_is_black(self):
        bits = aruco_bits(3)
        assert not bits[0, :].any()
        assert not bits[-1, :].any()
        assert not bits[:, 0].any()
        assert not bits[:, -1].any()

    def test_cells_are_binary(self):
        bits = aruco_bits(1)
        assert set(np.unique(bits)) <= {0, 255}

    def test_ids_differ(self):
        assert not np.array_equal(aruco_bits(0), aruco_bits(1))

    def test_out_of_dictionary(self):
        with pytest.raises(ValueError):
            aruco_bits(50)
        with pytest.raises(ValueError):
            aruco_bits(-1)


class TestDrawing:
    """Smoke tests drawing onto a real canvas."""

    def test_draw_all(self):
        buf = io.BytesIO()
        c = canvas.Canvas(buf)
        draw_quiet_zone(c, 100, 100, 40, 5)
        draw_solid_marker(c, 100, 100, 40)
        draw_aruco_marker(c, 200, 100, 40, 7)
        c.showPage()
        c.save()

        assert buf.getvalue().startswith(b"%PDF")
