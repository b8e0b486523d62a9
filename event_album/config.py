# config.py  (S3 + device-side deployment)
from dotenv import load_dotenv
load_dotenv()

import os
import logging

import boto3
from botocore.client import Config as BotoConfig


# --- LOGGING ---
# WARNING keeps batch uploads quiet; set LOG_LEVEL=INFO when debugging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level=None):
    """Root logger setup for the command-line scripts. The engine itself only creates module loggers."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING),
        format=LOG_FORMAT
    )


def _int_env(name, default):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"{name} is not an integer ({value!r}). Using default: {default}")
        return default


def _float_env(name, default):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"{name} is not a number ({value!r}). Using default: {default}")
        return default


# --- OBJECT STORE ---
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID", "")
AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY", "")

S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
if not S3_BUCKET_NAME:
    logger.warning("S3_BUCKET_NAME environment variable not set. Using default bucket: ps-pics")
    S3_BUCKET_NAME = "ps-pics"

# Public objects are addressed as https://{bucket}.{host}/{key}
S3_STORAGE_HOST = os.environ.get("S3_STORAGE_HOST", "s3.amazonaws.com").strip()
S3_STORAGE_HOST = S3_STORAGE_HOST.replace("https://", "").replace("http://", "").rstrip("/")

# Optional endpoint for S3-compatible stores (MinIO, R2, ...)
S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL", "").strip() or None

# --- TRANSFER LIMITS ---
MAX_UPLOAD_MB = _int_env("MAX_UPLOAD_MB", 10)
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024

UPLOAD_PART_SIZE_MB = _int_env("UPLOAD_PART_SIZE_MB", 5)
if UPLOAD_PART_SIZE_MB < 5:
    # S3 rejects multipart parts smaller than 5 MiB (except the last one)
    logger.warning(f"UPLOAD_PART_SIZE_MB={UPLOAD_PART_SIZE_MB} is below the S3 minimum. Using 5.")
    UPLOAD_PART_SIZE_MB = 5
UPLOAD_PART_SIZE_BYTES = UPLOAD_PART_SIZE_MB * 1024 * 1024

UPLOAD_CONCURRENCY = max(1, _int_env("UPLOAD_CONCURRENCY", 4))

DOWNLOAD_DELAY_SECONDS = max(0.0, _float_env("DOWNLOAD_DELAY_SECONDS", 0.8))
DOWNLOAD_TIMEOUT_SECONDS = _float_env("DOWNLOAD_TIMEOUT_SECONDS", 30.0)


def create_s3_client():
    """
    Build the boto3 S3 client used by ObjectStore.

    Falls back to the default credential chain (profile, instance role)
    when no explicit keys are configured.
    """
    if not AWS_ACCESS_KEY_ID or not AWS_SECRET_ACCESS_KEY:
        logger.warning("AWS credentials not set in environment. Using the default boto3 credential chain.")

    return boto3.client(
        "s3",
        region_name=AWS_REGION,
        endpoint_url=S3_ENDPOINT_URL,
        aws_access_key_id=AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY or None,
        config=BotoConfig(signature_version="s3v4"),
    )
