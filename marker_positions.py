"""
Square position markers for ReportLab documents.

A marker is placed in the story like any other flowable. Its page and
coordinates are only known once the layout pass has put it on a page, so the
bounding box is recorded from ``draw()``, which platypus calls after the frame
has fixed the flowable's position. Recorded boxes accumulate in a
``PositionRegistry`` and are written to a JSON file once the build is over:

    { "<id>": { "page": 1, "x": [2.0, 2.35], "y": [3.1, 3.45] }, ... }

Coordinates are centimeters from the top-left corner of the page.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.platypus import BaseDocTemplate, Flowable, Frame, PageTemplate

from marker_render import (
    ARUCO_DICT_SIZE,
    draw_aruco_marker,
    draw_quiet_zone,
    draw_solid_marker,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
UNIT_SCALE = cm          # points per physical unit
PRECISION = 2            # decimal digits kept after conversion
DEFAULT_MARKER_SIZE = 10 # points
REGISTRY_PATH = "/pos.json"
DEFAULT_DEST_DIRNAME = "dest"

MARKER_STYLES = ("solid", "aruco")


def to_physical(length):
    """Convert a length in points to centimeters.

    Uses Python's ``round``: half-to-even on the binary value of the quotient.
    """
    return round(length / UNIT_SCALE, PRECISION)


def registry_key(marker_id):
    if isinstance(marker_id, str):
        return marker_id
    return json.dumps(marker_id, sort_keys=True)


def resolve_registry_path(dest, path=REGISTRY_PATH):
    """Resolve ``path`` against the output directory ``dest``.

    A leading slash means the root of the output directory. Anything that
    ends up outside of it is refused.
    """
    root = Path(dest).resolve()
    target = (root / path.lstrip("/")).resolve()
    if root not in target.parents:
        raise PermissionError(f"access denied: '{path}' is outside of {root}")
    return target


class MarkerState(Enum):
    DECLARED = "declared"
    LAYOUT_PENDING = "layout_pending"
    RESOLVED = "resolved"
    RECORDED = "recorded"


@dataclass(frozen=True)
class BoundingBox:
    page: int
    x: tuple
    y: tuple

    @classmethod
    def from_anchor(cls, page, x, y, size):
        """Box of a square of edge ``size`` whose top-left corner is (x, y), in points."""
        return cls(
            page=page,
            x=(to_physical(x), to_physical(x + size)),
            y=(to_physical(y), to_physical(y + size)),
        )

    def to_dict(self):
        return {"page": self.page, "x": list(self.x), "y": list(self.y)}


class PositionRegistry:
    """Build context collecting marker boxes for one document build.

    Entries are kept in memory, keyed by marker id, and written to disk by
    ``flush``. Placing the same id twice keeps the last resolved box.
    """

    def __init__(self, dest, path=REGISTRY_PATH, merge=False):
        self.path = resolve_registry_path(dest, path)
        self.merge = merge
        self._entries = {}
        self._pending = []

    def declare(self, marker):
        self._pending.append(marker)
        marker.state = MarkerState.LAYOUT_PENDING
        logger.debug("Declared marker %r (size=%s)", marker.marker_id, marker.size)

    def resolve(self, marker, page, x, y):
        """Record the box of ``marker`` now that layout has placed it.

        ``x`` and ``y`` are the marker's top-left corner in points, measured
        from the top-left corner of ``page``.
        """
        box = BoundingBox.from_anchor(page, x, y, marker.size)
        marker.state = MarkerState.RESOLVED
        self.record(marker.marker_id, box)
        marker.state = MarkerState.RECORDED
        if marker in self._pending:
            self._pending.remove(marker)
        return box

    def record(self, marker_id, box):
        key = registry_key(marker_id)
        if key in self._entries and self._entries[key] != box:
            logger.debug("Overwriting position of %r", key)
        self._entries[key] = box
        logger.debug("Recorded %r -> %s", key, box)

    def entries(self):
        return dict(self._entries)

    def pending(self):
        """Ids declared but never placed by the layout.

        An id placed through another marker already has an entry and is not listed.
        """
        return [m.marker_id for m in self._pending if registry_key(m.marker_id) not in self._entries]

    def to_dict(self):
        data = {}
        if self.merge and self.path.exists():
            with open(self.path) as f:
                data.update(json.load(f))
        for key, box in self._entries.items():
            data[key] = box.to_dict()
        return data

    def flush(self):
        """Write all recorded positions to the registry file and return its path."""
        for marker_id in self.pending():
            logger.debug("Marker %r was never placed, no position recorded", marker_id)

        data = self.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)

        logger.info("Wrote %d marker position(s) to %s", len(data), self.path)
        return self.path


class PositionMarker(Flowable):
    """Square placeholder whose final position is reported to a registry.

    ``outset`` pads the drawn quiet zone only; neither the layout box nor the
    recorded box include it.
    """

    def __init__(self, registry, marker_id, size=DEFAULT_MARKER_SIZE, outset=0, style="solid"):
        Flowable.__init__(self)
        if style not in MARKER_STYLES:
            raise ValueError(f"Unknown marker style '{style}', expected one of {MARKER_STYLES}")
        if style == "aruco" and not (
            isinstance(marker_id, int) and 0 <= marker_id < ARUCO_DICT_SIZE
        ):
            raise ValueError(f"ArUco markers need an integer id in 0..{ARUCO_DICT_SIZE - 1}, got {marker_id!r}")

        self.registry = registry
        self.marker_id = marker_id
        self.size = size
        self.outset = outset
        self.style = style
        self.hAlign = 'LEFT'
        self.state = MarkerState.DECLARED

    def __repr__(self):
        return f"PositionMarker({self.marker_id!r}, size={self.size}, state={self.state.value})"

    def wrap(self, availWidth, availHeight):
        self.width = self.height = self.size
        return self.size, self.size

    def draw(self):
        c = self.canv
        draw_quiet_zone(c, 0, 0, self.size, self.outset)
        if self.style == "aruco":
            draw_aruco_marker(c, 0, 0, self.size, self.marker_id)
        else:
            draw_solid_marker(c, 0, 0, self.size)

        # Top-left corner in page space; PDF space grows upwards and the
        # current transform may scale the marker
        x, top = c.absolutePosition(0, self.size)
        page_height = c._pagesize[1]
        self.registry.resolve(self, c.getPageNumber(), x, page_height - top)


def place_marker(registry, marker_id, size=DEFAULT_MARKER_SIZE, outset=0, style="solid"):
    """Create a marker flowable and register it for position capture."""
    marker = PositionMarker(registry, marker_id, size=size, outset=outset, style=style)
    registry.declare(marker)
    return marker


class MarkerDocTemplate(BaseDocTemplate):
    """Single-frame document that flushes its registry when the build ends."""

    def __init__(self, filename, registry, margin=0, padding=0, **kw):
        self.registry = registry
        kw.setdefault('pagesize', A4)
        BaseDocTemplate.__init__(
            self, filename,
            leftMargin=margin, rightMargin=margin,
            topMargin=margin, bottomMargin=margin,
            **kw
        )
        frame = Frame(
            self.leftMargin, self.bottomMargin, self.width, self.height,
            leftPadding=padding, rightPadding=padding,
            topPadding=padding, bottomPadding=padding,
            id='normal',
        )
        self.addPageTemplates([PageTemplate(id='page', frames=[frame])])

    def build(self, flowables, *args, **kw):
        BaseDocTemplate.build(self, flowables, *args, **kw)
        self.registry.flush()


def build_document(filename, story, registry, pagesize=A4, margin=0, padding=0):
    """Lay out ``story`` into ``filename`` and write the registry. Returns the registry path."""
    doc = MarkerDocTemplate(filename, registry, margin=margin, padding=padding, pagesize=pagesize)
    doc.build(story)
    return registry.path
