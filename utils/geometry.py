"""
Selection geometry.

Converts a mouse drag, measured in the coordinate space of the scrollable
container, into a region expressed as fractions of the displayed image, and
maps stored regions back onto the currently rendered image box.
"""
from typing import Optional

from core.constants import MIN_SELECTION_PX, REGION_HASH_PRECISION
from core.models import AbsoluteBox, NormalizedRegion, Point, SelectionRect


def drag_to_box(drag_start: Point, drag_end: Point) -> AbsoluteBox:
    """
    Build the dragged rectangle regardless of drag direction.

    Args:
        drag_start: Pointer position on mouse down
        drag_end: Pointer position on mouse up (or current move)

    Returns:
        AbsoluteBox with origin at the top-left corner
    """
    return AbsoluteBox(
        left=min(drag_start.x, drag_end.x),
        top=min(drag_start.y, drag_end.y),
        width=abs(drag_end.x - drag_start.x),
        height=abs(drag_end.y - drag_start.y)
    )


def compute_selection(
    drag_start: Point,
    drag_end: Point,
    container_box: AbsoluteBox,
    image_box: AbsoluteBox,
    min_size: float = MIN_SELECTION_PX
) -> Optional[SelectionRect]:
    """
    Turn a finished drag into a normalized region plus its pixel box.

    Args:
        drag_start: Drag start relative to the container
        drag_end: Drag end relative to the container
        container_box: The container's box (same space as image_box)
        image_box: The rendered image's box in the same space
        min_size: Minimum extent in pixels along both axes

    Returns:
        SelectionRect, or None when the drag is too small to be a selection
    """
    box = drag_to_box(drag_start, drag_end)
    if box.width < min_size or box.height < min_size:
        return None
    if image_box.width <= 0 or image_box.height <= 0:
        return None

    # Image offset inside the container (letterboxing, centering)
    offset_left = image_box.left - container_box.left
    offset_top = image_box.top - container_box.top

    fx = (box.left - offset_left) / image_box.width
    fy = (box.top - offset_top) / image_box.height
    fw = box.width / image_box.width
    fh = box.height / image_box.height

    region = NormalizedRegion.clamped(fx, fy, fw, fh)
    return SelectionRect(region=region, abs_box=box)


def compute_region(
    drag_start: Point,
    drag_end: Point,
    container_box: AbsoluteBox,
    image_box: AbsoluteBox,
    min_size: float = MIN_SELECTION_PX
) -> Optional[NormalizedRegion]:
    """Normalized region for a drag, or None for accidental clicks."""
    selection = compute_selection(
        drag_start, drag_end, container_box, image_box, min_size=min_size
    )
    return selection.region if selection else None


def region_to_box(region: NormalizedRegion, image_box: AbsoluteBox) -> AbsoluteBox:
    """
    Place a stored region on the image as currently rendered.

    Called on every render so overlays follow window resizes.
    """
    return AbsoluteBox(
        left=image_box.left + region.x * image_box.width,
        top=image_box.top + region.y * image_box.height,
        width=region.w * image_box.width,
        height=region.h * image_box.height
    )


def region_hash(region: NormalizedRegion, precision: int = REGION_HASH_PRECISION) -> str:
    """Stable key for a region, insensitive to float noise below `precision`."""
    return "_".join(
        f"{value:.{precision}f}" for value in (region.x, region.y, region.w, region.h)
    )


def overlay_key(page_index: int, region: NormalizedRegion) -> str:
    """Dedup key for an overlay on a page."""
    return f"{page_index}-{region_hash(region)}"
