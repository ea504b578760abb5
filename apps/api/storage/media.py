"""Media hosting backends. Upload a local file, get back a public URL.

Local disk is the default and is served by the app under /media; the S3
backend targets any S3-compatible object store.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path

import settings
from storage.probe import probe_duration

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov", ".mkv", ".avi", ".m4v"}


@dataclass
class UploadResult:
    url: str
    public_id: str
    resource_type: str
    bytes: int
    # Hundredths of a second, video uploads only
    duration: float | None = None


def resource_type_for(path: Path) -> str:
    return "video" if path.suffix.lower() in VIDEO_EXTENSIONS else "image"


class MediaStorage:
    """Base class: probe, hand off to the backend, always drop the temp file."""

    async def upload(self, local_path: str | Path) -> UploadResult:
        path = Path(local_path)
        try:
            if not path.is_file():
                raise FileNotFoundError(f"Upload source not found: {path}")

            resource_type = resource_type_for(path)
            duration = None
            if resource_type == "video":
                seconds = await asyncio.to_thread(probe_duration, str(path))
                if seconds is not None:
                    duration = round(seconds * 100, 2)

            public_id = f"{resource_type}s/{uuid.uuid4().hex}{path.suffix.lower()}"
            size = path.stat().st_size
            url = await self._store(path, public_id)
            logger.info("Uploaded %s (%d bytes) to %s", path.name, size, url)
            return UploadResult(
                url=url,
                public_id=public_id,
                resource_type=resource_type,
                bytes=size,
                duration=duration,
            )
        finally:
            path.unlink(missing_ok=True)

    async def delete(self, public_id: str) -> None:
        """Remove a previously uploaded asset. Missing assets are not an error."""
        raise NotImplementedError

    async def _store(self, path: Path, public_id: str) -> str:
        raise NotImplementedError


class LocalMediaStorage(MediaStorage):
    def __init__(self, base_dir: Path | None = None, base_url: str | None = None):
        self.base = base_dir or settings.MEDIA_DIR
        self.base_url = (base_url or settings.MEDIA_BASE_URL).rstrip("/")
        self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        for subdir in ("videos", "images"):
            (self.base / subdir).mkdir(parents=True, exist_ok=True)

    def path_for(self, public_id: str) -> Path:
        return self.base / public_id

    async def _store(self, path: Path, public_id: str) -> str:
        dest = self.path_for(public_id)
        await asyncio.to_thread(shutil.copyfile, path, dest)
        return f"{self.base_url}/media/{public_id}"

    async def delete(self, public_id: str) -> None:
        await asyncio.to_thread(self.path_for(public_id).unlink, missing_ok=True)
        logger.info("Deleted local media %s", public_id)


class S3MediaStorage(MediaStorage):
    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        public_base_url: str | None = None,
        object_acl: str | None = None,
        client=None,
    ):
        if not bucket:
            raise RuntimeError("S3_BUCKET must be set when MEDIA_BACKEND=s3")
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        # None sends no ACL header
        self.object_acl = object_acl or None
        if client is None:
            import boto3

            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        self.client = client

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        if self.region:
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def _store(self, path: Path, public_id: str) -> str:
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        extra_args = {"ContentType": content_type}
        if self.object_acl:
            extra_args["ACL"] = self.object_acl
        await asyncio.to_thread(
            self.client.upload_file,
            str(path),
            self.bucket,
            public_id,
            ExtraArgs=extra_args,
        )
        return self.public_url(public_id)

    async def delete(self, public_id: str) -> None:
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=public_id)
        logger.info("Deleted s3://%s/%s", self.bucket, public_id)


_media_storage: MediaStorage | None = None


def create_media_storage(backend: str | None = None) -> MediaStorage:
    backend = (backend or settings.MEDIA_BACKEND).lower()
    if backend == "local":
        return LocalMediaStorage()
    if backend == "s3":
        return S3MediaStorage(
            settings.S3_BUCKET,
            endpoint_url=settings.S3_ENDPOINT_URL,
            access_key=settings.S3_ACCESS_KEY,
            secret_key=settings.S3_SECRET_KEY,
            region=settings.S3_REGION,
            public_base_url=settings.S3_PUBLIC_BASE_URL,
            object_acl=settings.S3_OBJECT_ACL,
        )
    raise RuntimeError(f"Unknown MEDIA_BACKEND '{backend}' (expected 'local' or 's3')")


def get_media_storage() -> MediaStorage:
    """Return the process-wide media backend, creating it on first use."""
    global _media_storage
    if _media_storage is None:
        _media_storage = create_media_storage()
    return _media_storage
