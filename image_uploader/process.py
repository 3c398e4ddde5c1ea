"""Image transformation for Image Uploader.

Applies planned resize/crop instructions with Pillow, then auto-orients,
optionally strips metadata, and writes the result at the requested quality.
"""

from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import TransformError
from .geometry import center_crop_box, resolve_size
from .logging_config import get_logger
from .models import ImageDimensions, TransformInstructions

logger = get_logger("process")

# Output formats that cannot carry an alpha channel or palette
_RGB_ONLY_FORMATS = {'JPEG'}


def execute_transform(
    source: Path,
    destination: Path,
    instructions: TransformInstructions,
    quality: int = 90,
    strip_metadata: bool = True,
) -> Path:
    """Transform an image and write it to destination.

    Steps run in a fixed order: resize, crop, auto-orient, strip metadata,
    set quality, write.

    Args:
        source: Path to input image
        destination: Output path; the format is taken from its suffix
        instructions: Planner output
        quality: Output quality 1-100
        strip_metadata: If True, drop EXIF, ICC profile and comments

    Returns:
        The destination path

    Raises:
        TransformError: If the image cannot be decoded or written
    """
    source = Path(source)
    destination = Path(destination)

    try:
        with Image.open(source) as original:
            original.load()
            image = original.copy()
            image.info = dict(original.info)
    except (OSError, UnidentifiedImageError) as e:
        raise TransformError(f"Could not decode {source.name}: {e}")

    natural = ImageDimensions(*image.size)
    target_size = resolve_size(natural, instructions)

    if target_size != image.size:
        logger.debug("Resizing %s from %sx%s to %sx%s", source.name, *image.size, *target_size)
        image = _keep_info(image, image.resize(target_size, Image.Resampling.LANCZOS))

    if instructions.crop is not None:
        box = center_crop_box(image.size, instructions.crop)
        image = _keep_info(image, image.crop(box))

    image = _auto_orient(image)

    try:
        output_format = Image.registered_extensions()[destination.suffix.lower()]
    except KeyError:
        raise TransformError(f"Unsupported output format: {destination.suffix or '(none)'}")

    if output_format in _RGB_ONLY_FORMATS:
        image = flatten_to_rgb(image)

    save_params = {'format': output_format, 'quality': quality}
    if not strip_metadata:
        exif = image.getexif()
        if exif:
            save_params['exif'] = exif.tobytes()
        if image.info.get('icc_profile'):
            save_params['icc_profile'] = image.info['icc_profile']

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if strip_metadata:
            image = strip_image_metadata(image)
        image.save(destination, **save_params)
    except (OSError, ValueError) as e:
        raise TransformError(f"Could not write {destination}: {e}")

    return destination


def strip_image_metadata(image: Image.Image) -> Image.Image:
    """Return a copy of an image with no EXIF, ICC profile or comments.

    Args:
        image: PIL Image object

    Returns:
        Pixel-identical image without metadata
    """
    clean = image.copy()
    clean.info = {}
    clean.getexif().clear()
    return clean


def flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Convert an image to RGB, compositing transparency onto white.

    Args:
        image: PIL Image object in any mode

    Returns:
        RGB image
    """
    info = dict(image.info)

    if image.mode == 'P':
        image = image.convert('RGBA')

    if image.mode in ('RGBA', 'LA'):
        background = Image.new('RGB', image.size, (255, 255, 255))
        background.paste(image, mask=image.split()[-1])
        image = background
    elif image.mode != 'RGB':
        image = image.convert('RGB')

    image.info = info
    return image


def _auto_orient(image: Image.Image) -> Image.Image:
    """Rotate/flip according to the EXIF orientation flag carried in info."""
    oriented = ImageOps.exif_transpose(image)
    return oriented if oriented is not None else image


def _keep_info(before: Image.Image, after: Image.Image) -> Image.Image:
    after.info = dict(before.info)
    return after
