import logging
import time
from typing import BinaryIO, Optional

import cloudinary
import cloudinary.uploader

from repairdesk.errors import InternalError

logger = logging.getLogger(__name__)


class CloudinaryPhotoStorage:
    """Uploads ticket photos to Cloudinary and hands back stable https URLs."""

    def __init__(self, cloud_name: Optional[str], api_key: Optional[str], api_secret: Optional[str],
                 folder: str = 'service-requests'):
        self.folder = folder
        self.configured = all([cloud_name, api_key, api_secret])
        if self.configured:
            cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
            logger.info('Cloudinary configured')
        else:
            logger.warning('Cloudinary credentials missing; photo uploads will fail')

    @classmethod
    def from_config(cls, config) -> 'CloudinaryPhotoStorage':
        return cls(
            config.get('CLOUDINARY_CLOUD_NAME'),
            config.get('CLOUDINARY_API_KEY'),
            config.get('CLOUDINARY_API_SECRET'),
            folder=config.get('CLOUDINARY_FOLDER', 'service-requests'),
        )

    def upload(self, stream: BinaryIO, filename: str = '') -> str:
        if not self.configured:
            raise InternalError('Photo storage not configured')
        options = {'folder': self.folder, 'resource_type': 'image'}
        if filename:
            stem = filename.rsplit('.', 1)[0]
            options['public_id'] = f"{int(time.time() * 1000)}_{stem}"
        try:
            result = cloudinary.uploader.upload(stream, **options)
        except Exception as e:
            logger.error(f"Cloudinary upload error: {e}")
            raise InternalError('Photo upload failed') from e
        return result['secure_url']
