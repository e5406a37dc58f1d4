"""Canvas drawing helpers for position markers."""

import cv2
import numpy as np
from reportlab.lib import colors

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
# DICT_4X4_50: 4x4 data bits plus a 1-bit black border -> 6x6 grid.
# 0 = Black (Ink), 255 = White (Paper)
ARUCO_DICT_ID = cv2.aruco.DICT_4X4_50
ARUCO_DICT_SIZE = 50
ARUCO_GRID = 6


def aruco_bits(marker_id):
    """Return the 6x6 cell grid (border included) of a DICT_4X4_50 marker."""
    if not 0 <= marker_id < ARUCO_DICT_SIZE:
        raise ValueError(f"ArUco id must be in 0..{ARUCO_DICT_SIZE - 1}, got {marker_id}")

    aruco_dict = cv2.aruco.getPredefinedDictionary(ARUCO_DICT_ID)
    # One pixel per cell
    if hasattr(cv2.aruco, 'generateImageMarker'):
        # OpenCV 4.7+
        img = cv2.aruco.generateImageMarker(aruco_dict, marker_id, ARUCO_GRID, borderBits=1)
    else:
        # Older OpenCV
        img = cv2.aruco.drawMarker(aruco_dict, marker_id, ARUCO_GRID, borderBits=1)
    return np.asarray(img, dtype=np.uint8)


def draw_quiet_zone(c, x, y, size, outset):
    # White padding around the marker; purely visual, layout never sees it
    if outset <= 0:
        return
    c.setFillColor(colors.white)
    c.rect(x - outset, y - outset, size + 2*outset, size + 2*outset, fill=1, stroke=0)


def draw_solid_marker(c, x, y, size):
    c.setFillColor(colors.black)
    c.rect(x, y, size, size, fill=1, stroke=0)


def draw_aruco_marker(c, x, y, size, marker_id):
    """Draw an ArUco marker as vector cells with (x, y) as its bottom-left corner."""
    bits = aruco_bits(marker_id)
    cell_size = size / float(ARUCO_GRID)

    # 1. Black Background (Border)
    draw_solid_marker(c, x, y, size)

    # 2. White Data Bits
    # Grid: row 0 is top. PDF coords: y increases upwards.
    c.setFillColor(colors.white)
    for row, col in np.argwhere(bits == 255):
        cx = x + col * cell_size
        cy = y + size - (row + 1) * cell_size
        c.rect(cx, cy, cell_size, cell_size, fill=1, stroke=0)
