"""Resize and crop planning.

Pure functions that turn an image's natural size and a ResizeSpec into
TransformInstructions. No I/O.
"""

from typing import Optional

from .models import CropBox, ImageDimensions, ResizeSpec, TransformInstructions


def plan_transform(
    natural: Optional[ImageDimensions],
    spec: ResizeSpec,
) -> TransformInstructions:
    """Decide how to resize and crop an image.

    Branches, in priority order:
    - A target dimension is None: resize by the other one, aspect preserved.
    - Square mode: pin the shorter natural axis to the target, leave the
      longer one free, then center crop to target x target.
    - Otherwise fit inside the target box without exceeding either bound.

    Args:
        natural: Measured image size, or None if it could not be measured
        spec: Resize request

    Returns:
        TransformInstructions for the transform executor
    """
    width, height = spec.target_width, spec.target_height

    if width is None or height is None:
        return TransformInstructions(resize_width=width, resize_height=height)

    if spec.is_square:
        return _plan_square(natural, width)

    return _plan_fit(natural, width, height)


def _plan_square(natural: Optional[ImageDimensions], size: int) -> TransformInstructions:
    if natural is None:
        # Best effort; may distort
        return TransformInstructions(resize_width=size, resize_height=size)

    crop = CropBox(size, size, 0, 0)
    if natural.width >= natural.height:
        return TransformInstructions(resize_height=size, crop=crop)
    return TransformInstructions(resize_width=size, crop=crop)


def _plan_fit(
    natural: Optional[ImageDimensions],
    width: int,
    height: int,
) -> TransformInstructions:
    if natural is None:
        return TransformInstructions(resize_width=width, resize_height=height, keep_aspect=True)

    scaled_height = natural.height / natural.width * width
    if scaled_height <= height:
        # Width is binding; height follows from the aspect ratio
        return TransformInstructions(resize_width=width)
    return TransformInstructions(resize_height=height)


def resolve_size(
    natural: ImageDimensions,
    instructions: TransformInstructions,
) -> tuple[int, int]:
    """Compute the pixel size the resize step produces.

    Args:
        natural: Size of the decoded image
        instructions: Planner output

    Returns:
        (width, height) after resizing, before any crop
    """
    width, height = instructions.resize_width, instructions.resize_height

    if width is None and height is None:
        return natural.width, natural.height

    if width is not None and height is not None:
        if not instructions.keep_aspect:
            return width, height
        scale = min(width / natural.width, height / natural.height)
        return _scaled(natural.width, scale), _scaled(natural.height, scale)

    if width is not None:
        return width, _scaled(natural.height, width / natural.width)
    return _scaled(natural.width, height / natural.height), height


def center_crop_box(
    size: tuple[int, int],
    crop: CropBox,
) -> tuple[int, int, int, int]:
    """Convert a center-gravity crop into a (left, top, right, bottom) box.

    The crop is clamped to the image so it never extends past an edge.
    """
    image_width, image_height = size
    crop_width = min(crop.width, image_width)
    crop_height = min(crop.height, image_height)

    left = (image_width - crop_width) // 2 + crop.x
    top = (image_height - crop_height) // 2 + crop.y
    left = max(0, min(left, image_width - crop_width))
    top = max(0, min(top, image_height - crop_height))

    return left, top, left + crop_width, top + crop_height


def _scaled(length: int, scale: float) -> int:
    return max(1, round(length * scale))
