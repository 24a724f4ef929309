"""YOLO label format reading and writing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional

from .errors import FormatError
from .models import Box

logger = logging.getLogger(__name__)

MIN_FIELDS = 5
MAX_FIELDS = 7


@dataclass(frozen=True)
class YOLOLabel:
    """
    One line of a YOLO label file.

    Geometry is normalized to [0, 1] as stored on disk, or in pixels after
    unnormalize().
    """

    class_id: int
    x_center: float
    y_center: float
    width: float
    height: float
    probability: Optional[float] = None
    object_id: Optional[int] = None


def _check_dimensions(img_width: float, img_height: float) -> None:
    if not (img_width > 0 and img_height > 0):
        raise FormatError(f"Degenerate image dimensions: {img_width}x{img_height}")


def _parse_int(field: str, name: str) -> int:
    try:
        return int(field)
    except ValueError:
        raise FormatError(f"Invalid {name}: {field!r}") from None


def _parse_float(field: str, name: str) -> float:
    try:
        return float(field)
    except ValueError:
        raise FormatError(f"Invalid {name}: {field!r}") from None


def parse_line(line: str) -> YOLOLabel:
    """
    Parse a single label line.

    Format: class_id x_center y_center width height [probability [object_id]],
    separated by spaces or tabs.

    Args:
        line: Line from a label file

    Returns:
        Parsed label with normalized geometry

    Raises:
        FormatError: If the line has the wrong number of fields or a field
            does not parse
    """
    data = line.split()
    if len(data) < MIN_FIELDS:
        raise FormatError(f"Expected at least {MIN_FIELDS} fields, got {len(data)}: {line!r}")
    if len(data) > MAX_FIELDS:
        raise FormatError(f"Expected at most {MAX_FIELDS} fields, got {len(data)}: {line!r}")

    class_id = _parse_int(data[0], "class id")
    if class_id < 0:
        raise FormatError(f"Negative class id: {class_id}")

    x_center, y_center, width, height = (
        _parse_float(value, name)
        for value, name in zip(data[1:5], ("x center", "y center", "width", "height"))
    )
    probability = _parse_float(data[5], "probability") if len(data) > 5 else None
    object_id = _parse_int(data[6], "object id") if len(data) > 6 else None

    return YOLOLabel(
        class_id=class_id,
        x_center=x_center,
        y_center=y_center,
        width=width,
        height=height,
        probability=probability,
        object_id=object_id,
    )


def parse_document(text: str) -> List[YOLOLabel]:
    """
    Parse a whole label file.

    Blank lines are skipped. A bad line fails the whole document.

    Raises:
        FormatError: With the 1-based number of the offending line
    """
    labels: List[YOLOLabel] = []
    for line_num, line in enumerate(text.splitlines(), 1):
        if not line.strip():
            continue
        try:
            labels.append(parse_line(line))
        except FormatError as e:
            raise FormatError(str(e), line_number=line_num) from e
    return labels


def unnormalize(label: YOLOLabel, img_width: float, img_height: float) -> YOLOLabel:
    """Scale label geometry from [0, 1] to image pixels."""
    _check_dimensions(img_width, img_height)
    return replace(
        label,
        x_center=label.x_center * img_width,
        y_center=label.y_center * img_height,
        width=label.width * img_width,
        height=label.height * img_height,
    )


def normalize(label: YOLOLabel, img_width: float, img_height: float) -> YOLOLabel:
    """Scale label geometry from image pixels to [0, 1]."""
    _check_dimensions(img_width, img_height)
    return replace(
        label,
        x_center=label.x_center / img_width,
        y_center=label.y_center / img_height,
        width=label.width / img_width,
        height=label.height / img_height,
    )


def label_to_box(label: YOLOLabel) -> Box:
    """Create a box from a label already in pixel coordinates."""
    return Box.from_center(
        label.x_center,
        label.y_center,
        label.width,
        label.height,
        class_id=label.class_id,
    )


def box_to_label(box: Box, img_width: float, img_height: float) -> YOLOLabel:
    """Create a normalized label from a box."""
    class_id, x_center, y_center, width, height = box.to_normalized_label(img_width, img_height)
    return YOLOLabel(class_id, x_center, y_center, width, height)


def to_line(box: Box, img_width: float, img_height: float) -> str:
    """
    Format a box as a YOLO label line.

    Args:
        box: Box in image pixels
        img_width: Image width in pixels
        img_height: Image height in pixels

    Returns:
        "class_id x_center y_center width height", normalized
    """
    label = box_to_label(box, img_width, img_height)
    return f"{label.class_id} {label.x_center} {label.y_center} {label.width} {label.height}"


class YOLOLabelReader:
    """Reader for YOLO label files."""

    def read(self, txt_path: Path, img_width: int, img_height: int) -> List[Box]:
        """
        Read boxes from a YOLO label file.

        A missing file means the image has no labels yet.

        Args:
            txt_path: Path to the label file
            img_width: Image width in pixels
            img_height: Image height in pixels

        Returns:
            List of boxes in pixel coordinates

        Raises:
            FormatError: If the file is malformed or not valid UTF-8; no boxes
                are returned
        """
        txt_path = Path(txt_path)
        if not txt_path.exists():
            logger.debug(f"Label file not found: {txt_path}")
            return []

        try:
            text = txt_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Label file {txt_path} is not valid text: {e}")
            raise FormatError(f"Undecodable label file {txt_path}: {e}") from e

        try:
            labels = parse_document(text)
            boxes = [label_to_box(unnormalize(label, img_width, img_height)) for label in labels]
        except FormatError as e:
            logger.error(f"Error parsing label file {txt_path}: {e}")
            raise

        logger.info(f"Loaded {len(boxes)} labels from {txt_path}")
        return boxes


class YOLOLabelWriter:
    """Writer for YOLO label files."""

    def write(
        self,
        txt_path: Path,
        boxes: List[Box],
        img_width: int,
        img_height: int
    ) -> bool:
        """
        Write boxes to a YOLO label file.

        Boxes without extent are skipped. With nothing left to write an
        existing label file is deleted.

        Args:
            txt_path: Path to write the label file
            boxes: Boxes in pixel coordinates
            img_width: Image width in pixels
            img_height: Image height in pixels

        Returns:
            True if the write was successful

        Raises:
            FormatError: If the image dimensions are not positive
        """
        txt_path = Path(txt_path)
        _check_dimensions(img_width, img_height)
        lines = [to_line(box, img_width, img_height) for box in boxes if not box.is_degenerate()]

        if not lines:
            if txt_path.exists():
                try:
                    txt_path.unlink()
                    logger.info(f"Deleted empty label file: {txt_path}")
                except OSError as e:
                    logger.error(f"Error deleting label file: {e}")
                    return False
            return True

        try:
            with open(txt_path, "w") as f:
                for line in lines:
                    f.write(line + "\n")
            logger.info(f"Saved {len(lines)} labels to {txt_path}")
            return True
        except OSError as e:
            logger.error(f"Error writing label file {txt_path}: {e}")
            return False


def get_annotation_path(image_path: Path) -> Path:
    """
    Get the label file path for an image.

    Args:
        image_path: Path to the image file

    Returns:
        Path to the sibling .txt label file
    """
    return Path(image_path).with_suffix(".txt")


def has_annotation(image_path: Path) -> bool:
    """
    Check if an image has a readable, non-empty label file.

    Args:
        image_path: Path to the image file

    Returns:
        True if the label file exists and holds at least one valid label
    """
    txt_path = get_annotation_path(image_path)
    if not txt_path.exists():
        return False

    try:
        return len(parse_document(txt_path.read_text(encoding="utf-8"))) > 0
    except (OSError, UnicodeDecodeError, FormatError):
        return False
