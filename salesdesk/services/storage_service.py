"""
Object storage for company logos and shared PDFs.

S3-compatible (MinIO, AWS S3, DigitalOcean Spaces) through boto3. Every
stored object is public-read so that links sent by email or WhatsApp
can be opened without credentials.
"""
import json
import logging
import mimetypes
from io import BytesIO
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import ClientError
from flask import current_app
from werkzeug.datastructures import FileStorage

logger = logging.getLogger(__name__)


class StorageService:
    """
    Usage:
        storage = get_storage_service()
        url = storage.upload_bytes(pdf_bytes, 'pdfs/<user>/<document>/Pedido_PED-1.pdf', 'application/pdf')
        url = storage.upload_file(request.files['logo'], 'logos/<user>/logo')
        storage.delete_file('logos/<user>/logo')
    """

    def __init__(self):
        """Initialize S3 client from Flask config."""
        config = current_app.config
        self.bucket = config['S3_BUCKET']
        self.public_url = config['S3_PUBLIC_URL'].rstrip('/')

        # Timeouts bound the share flow; no automatic retries
        self.client = boto3.client(
            's3',
            endpoint_url=config['S3_ENDPOINT'],
            aws_access_key_id=config['S3_ACCESS_KEY'],
            aws_secret_access_key=config['S3_SECRET_KEY'],
            region_name=config['S3_REGION'],
            config=BotoConfig(
                signature_version='s3v4',
                connect_timeout=config.get('S3_CONNECT_TIMEOUT', 5),
                read_timeout=config.get('S3_READ_TIMEOUT', 20),
                retries={'max_attempts': 1},
            )
        )

        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Create the bucket with a public-read policy if it doesn't exist."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') != '404':
                logger.error(f"[STORAGE] Failed to check bucket '{self.bucket}': {e}")
                raise
            self.client.create_bucket(Bucket=self.bucket)
            policy = {
                "Version": "2012-10-17",
                "Statement": [{
                    "Effect": "Allow",
                    "Principal": {"AWS": "*"},
                    "Action": "s3:GetObject",
                    "Resource": f"arn:aws:s3:::{self.bucket}/*"
                }]
            }
            self.client.put_bucket_policy(Bucket=self.bucket, Policy=json.dumps(policy))
            logger.info(f"[STORAGE] Bucket '{self.bucket}' created with public-read policy")

    def upload_bytes(self, data: bytes, object_name: str, content_type: str = 'application/octet-stream') -> str:
        """
        Upload raw bytes and return their public URL.

        Raises:
            ClientError / BotoCoreError: If the upload fails
        """
        logger.info(f"[STORAGE] Uploading '{object_name}' ({len(data)} bytes) to '{self.bucket}'")
        self.client.upload_fileobj(
            BytesIO(data),
            self.bucket,
            object_name,
            ExtraArgs={'ContentType': content_type, 'ACL': 'public-read'}
        )
        url = self.get_public_url(object_name)
        logger.info(f"[STORAGE] Uploaded: {url}")
        return url

    def upload_file(self, file: FileStorage, object_name: str, content_type: Optional[str] = None) -> str:
        """
        Validate and upload a file from request.files.

        Raises:
            ValueError: If file validation fails
            ClientError: If upload fails
        """
        self._validate_file(file)
        if not content_type:
            content_type = file.content_type or mimetypes.guess_type(file.filename)[0] or 'application/octet-stream'
        file.seek(0)
        return self.upload_bytes(file.read(), object_name, content_type)

    def delete_file(self, object_name: str) -> bool:
        """Delete an object; returns False when the storage refuses."""
        try:
            self.client.delete_object(Bucket=self.bucket, Key=object_name)
            logger.info(f"[STORAGE] Deleted: {object_name}")
            return True
        except ClientError as e:
            logger.exception(f"[STORAGE] Delete failed for '{object_name}': {e}")
            return False

    def get_public_url(self, object_name: str) -> str:
        return f"{self.public_url}/{self.bucket}/{object_name}"

    def _validate_file(self, file: FileStorage):
        if not file or not file.filename:
            raise ValueError("No se proporcionó ningún archivo")

        max_size = current_app.config.get('MAX_UPLOAD_SIZE', 2 * 1024 * 1024)
        file.seek(0, 2)
        file_size = file.tell()
        file.seek(0)
        if file_size > max_size:
            max_mb = max_size / (1024 * 1024)
            raise ValueError(f"El archivo es demasiado grande. Máximo {max_mb:.1f}MB")

        allowed_types = current_app.config.get('ALLOWED_MIME_TYPES', set())
        if allowed_types and file.content_type not in allowed_types:
            raise ValueError(f"Tipo de archivo no permitido: {file.content_type}")


# Singleton instance
_storage_service = None


def get_storage_service() -> StorageService:
    """Get or create StorageService singleton."""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
