"""
Image conversion utility for shrinking still images to WebP before upload.
"""
import io
import logging
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # Balance between quality and file size (0-100)
DEFAULT_WEBP_METHOD = 6    # Compression method (0-6, higher = better compression but slower)
MAX_DIMENSION = 2560       # Larger images are downscaled before encoding


async def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP format to reduce file size.

    Args:
        image_bytes: Original image file bytes
        quality: WebP quality (0-100, default: 85)
        max_dimension: Maximum width or height before downscaling (None to disable)

    Returns:
        Tuple[bytes, bool]:
            - WebP bytes, or the original bytes when conversion is skipped or fails
            - True if the returned bytes are WebP
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))

        if image.format == "WEBP":
            return image_bytes, True

        # Animated GIFs would lose their frames
        if getattr(image, "is_animated", False):
            logger.debug("Animated image, skipping WebP conversion")
            return image_bytes, False

        if image.mode == "P":
            image = image.convert("RGBA")
        elif image.mode not in ("RGB", "RGBA", "LA"):
            image = image.convert("RGB")

        if max_dimension:
            image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

        webp_buffer = io.BytesIO()
        image.save(webp_buffer, format="WEBP", quality=quality, method=DEFAULT_WEBP_METHOD)
        webp_bytes = webp_buffer.getvalue()

        logger.info(
            f"Converted image to WebP: {len(image_bytes):,} bytes → {len(webp_bytes):,} bytes "
            f"(quality={quality})"
        )
        return webp_bytes, True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False

    except Exception as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False
