import logging
from collections import namedtuple

from botocore.exceptions import BotoCoreError, ClientError

from event_album.errors import ListingError
from event_album.keys import event_prefix, owner_prefix
from event_album.session import require_owner

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png')

GalleryImage = namedtuple('GalleryImage', ['url', 'key'])


def is_image_key(key):
    return bool(key) and key.lower().endswith(IMAGE_EXTENSIONS)


def list_event_images(store, session, event_id, media_class=None):
    """
    Enumerate every image stored under an event.

    Keys that do not end in .jpg, .jpeg or .png (any case) are skipped.
    An event with no uploads yields an empty list, not an error.

    Args:
        store: ObjectStore bound to the album bucket
        session: UserSession of the event owner
        event_id: The event identifier
        media_class: Restrict to 'images' or 'selfies'; None lists both

    Returns:
        List of GalleryImage(url, key) in key order
    """
    owner = require_owner(session, "list_event_images")
    prefix = event_prefix(owner, event_id, media_class)

    logger.info(f"[PHOTO_AGGREGATION] Listing event images - event_id: {event_id}, prefix: {prefix}, operation: list_event_images")

    try:
        keys = store.list_keys(prefix)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"[PHOTO_AGGREGATION] Listing failed - event_id: {event_id}, prefix: {prefix}, error: {str(e)}, operation: list_event_images")
        raise ListingError(f"Failed to load event images: {e}", cause=e) from e

    images = [GalleryImage(store.public_url(key), key) for key in keys if is_image_key(key)]

    skipped = len(keys) - len(images)
    if skipped:
        logger.debug(f"[PHOTO_AGGREGATION] Skipped {skipped} non-image keys - event_id: {event_id}")
    logger.info(f"[PHOTO_AGGREGATION] Found {len(images)} images - event_id: {event_id}, operation: list_event_images")
    return images


def event_exists(store, session, event_id):
    """An event exists as long as at least one object shares its prefix."""
    owner = require_owner(session, "event_exists")
    try:
        return store.any_key(event_prefix(owner, event_id))
    except (BotoCoreError, ClientError) as e:
        raise ListingError(f"Failed to look up event {event_id}: {e}", cause=e) from e


def list_owner_events(store, session):
    """Event ids that currently hold at least one object for this owner."""
    prefix = owner_prefix(require_owner(session, "list_owner_events"))
    try:
        prefixes = store.list_prefixes(prefix)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"[PHOTO_AGGREGATION] Event listing failed - prefix: {prefix}, error: {str(e)}, operation: list_owner_events")
        raise ListingError(f"Failed to load events: {e}", cause=e) from e

    return [p[len(prefix):].rstrip('/') for p in prefixes if p.startswith(prefix)]


class GalleryView:
    """
    Caller-owned snapshot of an event gallery.

    Only refresh() and remove() change it; a failed delete never touches it.
    """

    def __init__(self, store, session, event_id, images=None):
        self.store = store
        self.session = session
        self.event_id = event_id
        self.images = list(images or [])

    def refresh(self):
        self.images = list_event_images(self.store, self.session, self.event_id)
        return self.images

    def remove(self, key):
        """Drop the entry with this key. Returns True when one was removed."""
        remaining = [image for image in self.images if image.key != key]
        removed = len(remaining) != len(self.images)
        self.images = remaining
        return removed

    def keys(self):
        return [image.key for image in self.images]

    def urls(self):
        return [image.url for image in self.images]

    def __contains__(self, key):
        return any(image.key == key for image in self.images)

    def __iter__(self):
        return iter(self.images)

    def __len__(self):
        return len(self.images)
