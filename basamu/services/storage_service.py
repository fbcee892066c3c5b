"""
Cloudinary-backed blob store.
A bucket maps to a Cloudinary folder and an object path to the public id inside it;
the secure URL returned by Cloudinary is the stable public URL stored in records.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from basamu.config import settings
import logging
import asyncio
from typing import Any, Dict

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True  # Always use HTTPS for secure URLs
)


def _public_id(bucket: str, path: str) -> str:
    # Cloudinary appends the delivery format itself, so the id carries no extension
    stem = path.rsplit(".", 1)[0] if "." in path.rsplit("/", 1)[-1] else path
    return f"{bucket}/{stem}"


def storage_path_from_url(public_url: str, bucket: str) -> str:
    """
    Derive an object's storage path from its public URL.

    Cloudinary URLs look like
    https://res.cloudinary.com/{cloud}/image/upload/v{version}/{bucket}/{path}.{format}
    so everything after the bucket segment is the path.

    Raises:
        ValueError: If the URL does not belong to the bucket
    """
    marker = f"/{bucket}/"
    if marker not in public_url:
        raise ValueError(f"URL is not in bucket '{bucket}': {public_url}")

    path = public_url.split(marker, 1)[1]
    path = path.split("?", 1)[0]
    if not path:
        raise ValueError(f"URL has no object path: {public_url}")
    return path


def resource_type_for_url(public_url: str) -> str:
    return "video" if "/video/upload/" in public_url else "image"


class CloudinaryBlobStore:
    """
    Blob store operations with retry on transient Cloudinary errors.
    """

    def __init__(self, max_retries: int = 3):
        self.max_retries = max_retries

    async def upload_file(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        overwrite: bool = False,
    ) -> str:
        """
        Upload bytes into a bucket under the given path.

        Returns:
            str: Secure HTTPS URL of the stored object

        Raises:
            CloudinaryError: If upload fails after all retries
        """
        public_id = _public_id(bucket, path)
        is_video = content_type.startswith("video/")
        options: Dict[str, Any] = {
            "public_id": public_id,
            "resource_type": "video" if is_video else "image",
            "overwrite": overwrite,
            "invalidate": overwrite,  # Replaced avatars must not be served from CDN cache
        }
        if not is_video:
            options.update({
                "quality": "auto",
                "transformation": [{"width": 1920, "height": 1080, "crop": "limit"}],
            })

        for attempt in range(self.max_retries):
            try:
                result = cloudinary.uploader.upload(data, **options)
                logger.info(f"Uploaded {public_id} to Cloudinary ({result.get('bytes')} bytes)")
                return result["secure_url"]

            except CloudinaryError as e:
                logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{self.max_retries}) for {public_id}: {str(e)}")

                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                    continue

                logger.error(f"Cloudinary upload failed after {self.max_retries} attempts for {public_id}: {str(e)}")
                raise

    async def delete_file(self, bucket: str, path: str, resource_type: str = "image") -> Dict[str, Any]:
        """
        Delete an object from a bucket.

        Raises:
            CloudinaryError: If deletion fails after all retries
        """
        public_id = _public_id(bucket, path)

        for attempt in range(self.max_retries):
            try:
                result = cloudinary.uploader.destroy(
                    public_id,
                    invalidate=True,  # Invalidate CDN cache
                    resource_type=resource_type
                )

                if result.get("result") in ("ok", "not found"):
                    logger.info(f"Deleted {public_id} from Cloudinary (result: {result.get('result')})")
                else:
                    logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
                return result

            except CloudinaryError as e:
                logger.warning(f"Cloudinary delete error (attempt {attempt + 1}/{self.max_retries}) for {public_id}: {str(e)}")

                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue

                logger.error(f"Cloudinary delete failed after {self.max_retries} attempts for {public_id}: {str(e)}")
                raise


_blob_store = CloudinaryBlobStore()


def get_blob_store() -> CloudinaryBlobStore:
    """FastAPI dependency returning the shared blob store."""
    return _blob_store


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    logger.info("Cloudinary configuration validated successfully")
    return True
