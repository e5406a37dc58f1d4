import argparse
import logging
import sys
from pathlib import Path

try:
    from reportlab.lib.pagesizes import A4, LETTER
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.lib.units import mm
    from reportlab.platypus import Paragraph, Spacer

    # Pulls in cv2 and numpy through marker_render
    from marker_positions import (
        DEFAULT_DEST_DIRNAME,
        DEFAULT_MARKER_SIZE,
        MARKER_STYLES,
        REGISTRY_PATH,
        PositionRegistry,
        build_document,
        place_marker,
    )
except ImportError:
    print("This script requires 'reportlab', 'opencv-python' and 'numpy'. Please install them using:")
    print("pip install reportlab opencv-python numpy")
    sys.exit(1)

PAGE_SIZES = {"letter": LETTER, "a4": A4}


def marker_sheet_story(registry, marker_ids, size=DEFAULT_MARKER_SIZE, outset=0, style="solid"):
    """
    Story for a sample sheet: a heading, a short note, then one labelled
    marker per id in reading order. Long id lists flow onto further pages.
    """
    styles = getSampleStyleSheet()
    story = [
        Paragraph("Marker Position Sheet", styles["Title"]),
        Paragraph(
            "Each square below is a position marker. Its page and bounding box "
            "(in cm, from the top-left corner of the page) are written to "
            f"<b>{REGISTRY_PATH.lstrip('/')}</b> once layout is complete.",
            styles["Normal"],
        ),
        Spacer(1, 6 * mm),
    ]
    for marker_id in marker_ids:
        story.append(Paragraph(f"Marker <b>{marker_id}</b>", styles["Normal"]))
        story.append(Spacer(1, 2 * mm))
        story.append(place_marker(registry, marker_id, size=size, outset=outset, style=style))
        story.append(Spacer(1, 4 * mm + 2 * outset))
    return story


def generate_marker_sheet(filename="marker_sheet.pdf", dest=None, page_size="a4", count=4,
                          size=DEFAULT_MARKER_SIZE, outset=0, style="solid", merge=False):
    output = Path(filename)
    if dest is None:
        dest = output.resolve().parent / DEFAULT_DEST_DIRNAME

    registry = PositionRegistry(dest, merge=merge)
    story = marker_sheet_story(registry, list(range(count)), size=size, outset=outset, style=style)
    pos_path = build_document(
        str(output), story, registry,
        pagesize=PAGE_SIZES[page_size], margin=20 * mm,
    )

    print(f"Success! Generated '{output}'")
    print(f"Marker positions saved to {pos_path} ({len(registry.entries())} recorded)")
    missing = registry.pending()
    if missing:
        print(f"Warning: {len(missing)} marker(s) were never placed: {missing}")
    return pos_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Marker Position Sheet Generator")
    parser.add_argument("output", nargs="?", default="marker_sheet.pdf", help="Path of the PDF to write")
    parser.add_argument("--dest", default=None, help=f"Output directory for {REGISTRY_PATH} (default: ./{DEFAULT_DEST_DIRNAME} next to the PDF)")
    parser.add_argument("--page-size", choices=sorted(PAGE_SIZES), default="a4", help="Paper size")
    parser.add_argument("--count", type=int, default=4, help="Number of markers to place")
    parser.add_argument("--size", type=float, default=DEFAULT_MARKER_SIZE, help="Marker edge in points")
    parser.add_argument("--outset", type=float, default=0, help="White quiet zone around each marker in points")
    parser.add_argument("--style", choices=MARKER_STYLES, default="solid", help="Marker drawing style")
    parser.add_argument("--merge", action="store_true", help="Keep entries already present in the position file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every recorded position")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    generate_marker_sheet(
        args.output, dest=args.dest, page_size=args.page_size, count=args.count,
        size=args.size, outset=args.outset, style=args.style, merge=args.merge,
    )
