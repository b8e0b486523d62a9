"""
Storage key layout for event media.

Every object lives under

    events/{owner_identity}/{event_id}/{media_class}/{upload_token}-{filename}

The owner identity is used verbatim so that one organizer's events never
share a prefix with another's. The upload token is the upload instant in
epoch milliseconds, bumped so that no two keys minted by this process
share a token.
"""
import logging
import mimetypes
import re
import threading
import time
import uuid
from collections import namedtuple
from datetime import datetime, timezone
from urllib.parse import quote, unquote, urlsplit

from event_album.errors import InvalidIdentity, ValidationError

logger = logging.getLogger(__name__)

KEY_ROOT = 'events'

IMAGES = 'images'
SELFIES = 'selfies'
MEDIA_CLASSES = (IMAGES, SELFIES)

MediaObject = namedtuple(
    'MediaObject',
    ['key', 'owner_identity', 'event_id', 'media_class', 'filename', 'content_type', 'uploaded_at']
)

_token_lock = threading.Lock()
_last_token = 0


def upload_token():
    """
    Return the current time in epoch milliseconds, strictly greater than
    any token previously returned by this process.
    """
    global _last_token
    with _token_lock:
        token = int(time.time() * 1000)
        if token <= _last_token:
            token = _last_token + 1
        _last_token = token
        return token


def new_event_id():
    return f"event_{uuid.uuid4().hex[:8]}"


def _check_owner(owner_identity):
    if owner_identity is None or not str(owner_identity).strip():
        raise InvalidIdentity("User identity is empty. Cannot build a storage key without an owner.")
    if '/' in owner_identity:
        logger.warning(f"[SECURITY] Owner identity contains a path separator - owner: {owner_identity}, operation: build_object_key")
        raise InvalidIdentity(f"User identity '{owner_identity}' cannot be used in a storage key.")
    return owner_identity


def _check_event_id(event_id):
    if event_id is None or not str(event_id).strip():
        raise ValidationError("An event id is required.")
    event_id = str(event_id)
    if '/' in event_id or '\\' in event_id or event_id in ('.', '..'):
        logger.warning(f"[SECURITY] Rejected event id - event_id: {event_id}, operation: build_object_key")
        raise ValidationError(f"Invalid event id: {event_id}")
    return event_id


def _check_media_class(media_class):
    if media_class not in MEDIA_CLASSES:
        raise ValidationError(f"Unknown media class: {media_class}")
    return media_class


def _base_filename(filename):
    if not filename:
        raise ValidationError("A filename is required.")
    # Only the last path component of a local path ever reaches the store
    base = filename.replace('\\', '/').rsplit('/', 1)[-1]
    if base != filename:
        logger.warning(f"[SECURITY] Directory components stripped from filename - original: {filename}, filename: {base}, operation: build_object_key")
    if not base:
        raise ValidationError("A filename is required.", filename=filename)
    return base


def unique_filename(filename, token=None):
    if token is None:
        token = upload_token()
    return f"{token}-{_base_filename(filename)}"


def owner_prefix(owner_identity):
    return f"{KEY_ROOT}/{_check_owner(owner_identity)}/"


def event_prefix(owner_identity, event_id, media_class=None):
    """Listing prefix for one event, optionally narrowed to a media class."""
    prefix = f"{owner_prefix(owner_identity)}{_check_event_id(event_id)}/"
    if media_class is not None:
        prefix += f"{_check_media_class(media_class)}/"
    return prefix


def build_object_key(owner_identity, event_id, media_class, filename, token=None):
    return event_prefix(owner_identity, event_id, media_class) + unique_filename(filename, token)


def parse_object_key(key):
    """
    Split a key written by build_object_key back into its parts.

    Raises ValueError when the key does not follow the event layout.
    """
    parts = key.split('/')
    if len(parts) != 5 or parts[0] != KEY_ROOT or not all(parts[1:]):
        raise ValueError(f"Not an event media key: {key}")
    _, owner, event_id, media_class, stored_name = parts
    if media_class not in MEDIA_CLASSES:
        raise ValueError(f"Unknown media class in key: {key}")

    token, sep, filename = stored_name.partition('-')
    if not sep or not token.isdigit() or not filename:
        raise ValueError(f"Missing upload token in key: {key}")

    uploaded_at = datetime.fromtimestamp(int(token) / 1000, tz=timezone.utc)
    content_type = mimetypes.guess_type(filename)[0]
    return MediaObject(key, owner, event_id, media_class, filename, content_type, uploaded_at)


def public_url(key, bucket, storage_host):
    return f"https://{bucket}.{storage_host}/{quote(key, safe='/@')}"


def key_from_url(url, bucket, storage_host):
    """Inverse of public_url. Returns None for URLs outside the bucket."""
    parts = urlsplit(url)
    if parts.netloc != f"{bucket}.{storage_host}":
        return None
    key = unquote(parts.path.lstrip('/'))
    return key or None


def sanitize_owner_folder(owner_identity):
    """Display-safe folder name: every non-alphanumeric character becomes '_'."""
    return re.sub(r'[^a-zA-Z0-9]', '_', owner_identity or '')


def display_path(role, owner_identity, filename):
    return f"{role}/{sanitize_owner_folder(owner_identity)}/{filename}"
