"""Runtime configuration read from the environment.

Values come from the process environment, with a repo-root .env loaded
first so local runs and scripts see the same settings.
"""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

# Repo root is two levels up from apps/api/
REPO_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(REPO_ROOT / ".env")

# Database
DATABASE_URL = os.environ.get("DATABASE_URL")
DB_POOL_MIN_SIZE = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
DB_POOL_MAX_SIZE = int(os.environ.get("DB_POOL_MAX_SIZE", "10"))

# Media hosting: "local" serves files from MEDIA_DIR under /media, "s3" pushes to a bucket
MEDIA_BACKEND = os.environ.get("MEDIA_BACKEND", "local").lower()
MEDIA_DIR = Path(os.environ.get("MEDIA_DIR", str(REPO_ROOT / "data" / "media")))
MEDIA_BASE_URL = os.environ.get("MEDIA_BASE_URL", "http://localhost:8000").rstrip("/")

S3_BUCKET = os.environ.get("S3_BUCKET", "")
S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL") or None
S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY") or None
S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY") or None
S3_REGION = os.environ.get("S3_REGION") or None
S3_PUBLIC_BASE_URL = os.environ.get("S3_PUBLIC_BASE_URL") or None
# Canned ACL for uploaded objects, e.g. "public-read". Empty sends no ACL header.
S3_OBJECT_ACL = os.environ.get("S3_OBJECT_ACL") or None

# Upload service reports duration in hundredths; stored duration = reported / divisor
VIDEO_DURATION_DIVISOR = float(os.environ.get("VIDEO_DURATION_DIVISOR", "100"))

# Multipart uploads are spooled here before being handed to the media backend
UPLOAD_TMP_DIR = Path(os.environ.get("UPLOAD_TMP_DIR", tempfile.gettempdir()))

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.environ.get("ALLOWED_ORIGINS", "http://localhost:8080").split(",")
    if o.strip()
]
