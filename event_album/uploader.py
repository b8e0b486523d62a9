import io
import logging
import mimetypes
import os
from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from event_album import config
from event_album.errors import TransferError, ValidationError
from event_album.keys import IMAGES, SELFIES, build_object_key, display_path, new_event_id
from event_album.session import require_owner

logger = logging.getLogger(__name__)

# Any of these in a filename marks it as a selfie; selfies never go to the main gallery
SELFIE_NAME_TOKENS = ('selfie', 'self')
SELFIE_NOTICE = "Selfie images should be uploaded through the selfie upload page."
EMPTY_BATCH_MESSAGE = "Please select at least one image to upload."

UploadResult = namedtuple(
    'UploadResult',
    ['urls', 'keys', 'display_paths', 'event_id', 'excluded', 'notice']
)


class LocalImage:
    """A candidate file picked on the device, not yet uploaded."""

    def __init__(self, filename, content_type, size, data=None, path=None):
        if data is None and path is None:
            raise ValueError("LocalImage needs either data or a path")
        self.filename = filename
        self.content_type = content_type or ''
        self.size = size
        self.data = data
        self.path = path

    @classmethod
    def from_path(cls, path, content_type=None):
        filename = os.path.basename(path)
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0]
        return cls(filename, content_type, os.path.getsize(path), path=path)

    @classmethod
    def from_bytes(cls, filename, data, content_type=None):
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0]
        return cls(filename, content_type, len(data), data=data)

    def open(self):
        if self.data is not None:
            return io.BytesIO(self.data)
        return open(self.path, 'rb')

    def __repr__(self):
        return f"LocalImage({self.filename!r}, {self.content_type!r}, {self.size})"


def is_selfie_filename(filename):
    name = (filename or '').lower()
    return any(token in name for token in SELFIE_NAME_TOKENS)


def split_selfie_files(files):
    """Return (accepted, excluded), both in the caller's order."""
    accepted, excluded = [], []
    for f in files:
        (excluded if is_selfie_filename(f.filename) else accepted).append(f)
    return accepted, excluded


def validate_image(image, max_bytes=None):
    """
    Raise ValidationError when the file is not an image or is too large.
    """
    if max_bytes is None:
        max_bytes = config.MAX_UPLOAD_BYTES

    if not image.content_type.startswith('image/'):
        raise ValidationError(f"{image.filename} is not a valid image file", filename=image.filename)

    if image.size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise ValidationError(f"{image.filename} exceeds the {limit_mb:g}MB size limit", filename=image.filename)


def object_metadata(event_id, user_email):
    return {
        'event-id': event_id,
        'user-email': user_email or '',
        'upload-date': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
    }


def _upload_one(store, image, key, event_id, user_email):
    try:
        with image.open() as body:
            store.put(key, body, image.content_type, object_metadata(event_id, user_email))
    except (Boto3Error, BotoCoreError, ClientError, OSError) as e:
        logger.error(f"[PHOTO_UPLOAD] Upload failed - event_id: {event_id}, filename: {image.filename}, key: {key}, error: {str(e)}, operation: upload_object")
        raise TransferError(f"Failed to upload {image.filename}: {e}", cause=e, filename=image.filename, key=key) from e

    logger.info(f"[PHOTO_UPLOAD] Upload success - event_id: {event_id}, filename: {image.filename}, key: {key}, operation: upload_object")
    return key


def _transfer_batch(store, images, keys, event_id, user_email, max_workers):
    """
    Upload every image concurrently and wait for all of them.

    The first failure in caller order is raised once every transfer has
    finished; nothing is returned for a partially failed batch.
    """
    workers = min(max_workers or config.UPLOAD_CONCURRENCY, len(images))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_upload_one, store, image, key, event_id, user_email)
            for image, key in zip(images, keys)
        ]

    failures = [f.exception() for f in futures if f.exception() is not None]
    if failures:
        logger.error(f"[PHOTO_UPLOAD] Batch failed - event_id: {event_id}, failed: {len(failures)}, total: {len(images)}, operation: upload_batch")
        raise failures[0]


def _prepare_batch(session, owner, files, event_id, media_class, max_bytes):
    for image in files:
        try:
            validate_image(image, max_bytes)
        except ValidationError:
            logger.warning(f"[PHOTO_UPLOAD] Validation failed - event_id: {event_id}, filename: {image.filename}, content_type: {image.content_type}, size: {image.size}, operation: validate_image")
            raise

    keys = [build_object_key(owner, event_id, media_class, image.filename) for image in files]
    paths = [display_path(session.role, owner, key.rsplit('/', 1)[-1]) for key in keys]
    return keys, paths


def upload_event_images(store, session, files, event_id=None, max_bytes=None, max_workers=None, on_notice=None):
    """
    Upload a batch of photos into an event's main gallery.

    Selfie files are dropped from the batch and reported through
    ``excluded``/``notice`` (and ``on_notice`` when given). Every remaining
    file is validated before the first network call, so an invalid file
    means nothing from the batch is written. When no event id is given a
    new one is assigned and echoed back in the result.

    Returns:
        UploadResult with public URLs in the caller's file order.
    """
    owner = require_owner(session, "upload_event_images")  # no identity, no upload

    accepted, excluded = split_selfie_files(list(files))
    notice = None
    if excluded:
        notice = SELFIE_NOTICE
        logger.warning(f"[PHOTO_UPLOAD] Selfie files excluded from gallery upload - event_id: {event_id}, filenames: {[f.filename for f in excluded]}, operation: upload_event_images")
        if on_notice is not None:
            on_notice(notice)

    if not accepted:
        raise ValidationError(notice or EMPTY_BATCH_MESSAGE)

    if not event_id:
        event_id = new_event_id()
        logger.info(f"[PHOTO_UPLOAD] Assigned new event id - event_id: {event_id}, operation: upload_event_images")

    keys, paths = _prepare_batch(session, owner, accepted, event_id, IMAGES, max_bytes)

    logger.info(f"[PHOTO_UPLOAD] Starting batch - event_id: {event_id}, files: {len(accepted)}, excluded: {len(excluded)}, operation: upload_event_images")
    _transfer_batch(store, accepted, keys, event_id, session.email, max_workers)

    urls = [store.public_url(key) for key in keys]
    logger.info(f"[PHOTO_UPLOAD] Batch complete - event_id: {event_id}, uploaded: {len(urls)}, operation: upload_event_images")
    return UploadResult(urls, keys, paths, event_id, excluded, notice)


def upload_selfies(store, session, event_id, files, max_bytes=None, max_workers=None):
    """Selfie intake for an existing event. Stored under the ``selfies`` class."""
    owner = require_owner(session, "upload_selfies")

    files = list(files)
    if not files:
        raise ValidationError(EMPTY_BATCH_MESSAGE)
    if not event_id:
        raise ValidationError("An event id is required to upload a selfie.")

    keys, paths = _prepare_batch(session, owner, files, event_id, SELFIES, max_bytes)

    logger.info(f"[PHOTO_UPLOAD] Starting selfie intake - event_id: {event_id}, files: {len(files)}, operation: upload_selfies")
    _transfer_batch(store, files, keys, event_id, session.email, max_workers)

    urls = [store.public_url(key) for key in keys]
    return UploadResult(urls, keys, paths, event_id, [], None)
