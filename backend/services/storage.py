import logging
import uuid
from pathlib import Path

from backend.core import config
from backend.core.errors import ValidationError

logger = logging.getLogger(__name__)

AVATAR_SUBDIR = 'avatars'
ALLOWED_IMAGE_TYPES = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
}


class AvatarStore:
    """Keeps profile pictures on local disk and hands out their public URLs."""

    def __init__(self, base_dir: str | Path, public_base_url: str, max_bytes: int):
        self.base_dir = Path(base_dir)
        self.public_prefix = f"{public_base_url.rstrip('/')}/uploads/{AVATAR_SUBDIR}/"
        self.max_bytes = max_bytes

    def _target_dir(self) -> Path:
        target = self.base_dir / AVATAR_SUBDIR
        target.mkdir(parents=True, exist_ok=True)
        return target

    def save(self, data: bytes, content_type: str | None) -> str:
        extension = ALLOWED_IMAGE_TYPES.get((content_type or '').lower())
        if extension is None:
            raise ValidationError({'avatar': 'Please upload an image file'})
        if not data:
            raise ValidationError({'avatar': 'Please upload an image'})
        if len(data) > self.max_bytes:
            raise ValidationError({'avatar': f'Image cannot exceed {self.max_bytes // (1024 * 1024)} MB'})

        filename = f'{uuid.uuid4().hex}.{extension}'
        (self._target_dir() / filename).write_bytes(data)
        return self.public_prefix + filename

    def invalidate(self, url: str | None) -> None:
        """Remove a previously issued image. Failures are logged, never raised."""
        if not url or not url.startswith(self.public_prefix):
            return

        filename = Path(url[len(self.public_prefix):]).name
        try:
            (self.base_dir / AVATAR_SUBDIR / filename).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning('Could not remove old avatar %s: %s', filename, exc)


def get_avatar_store() -> AvatarStore:
    return AvatarStore(config.UPLOAD_DIR, config.PUBLIC_BASE_URL, config.MAX_AVATAR_BYTES)
