import logging
from collections import namedtuple

from botocore.exceptions import BotoCoreError, ClientError

from event_album.errors import TransferError

logger = logging.getLogger(__name__)

DeleteSummary = namedtuple('DeleteSummary', ['deleted', 'failed_keys'])


def delete_object(store, key):
    """
    Delete one object. A key that is not in the store is an error, not a
    silent no-op.
    """
    if not key:
        raise TransferError("No photo selected for deletion.", key=key)

    try:
        if not store.exists(key):
            logger.error(f"[PHOTO_DELETE] Photo not found - key: {key}, operation: delete_object")
            raise TransferError("Photo not found", key=key)
        store.delete(key)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"[PHOTO_DELETE] Delete failed - key: {key}, error: {str(e)}, operation: delete_object")
        raise TransferError(f"Failed to delete photo: {e}", cause=e, key=key) from e

    logger.info(f"[PHOTO_DELETE] Photo deleted - key: {key}, operation: delete_object")


def delete_gallery_image(store, view, key):
    """Delete from the store, then drop exactly that entry from the view."""
    delete_object(store, key)
    view.remove(key)


def delete_gallery_images(store, view, keys):
    """
    Delete several photos, one call per key. A failure is recorded and the
    remaining keys are still attempted.
    """
    deleted, failed_keys = 0, []
    for key in keys:
        try:
            delete_gallery_image(store, view, key)
            deleted += 1
        except TransferError as e:
            logger.warning(f"[PHOTO_DELETE] Skipping failed delete - key: {key}, error: {e.message}, operation: delete_gallery_images")
            failed_keys.append(key)

    logger.info(f"[PHOTO_DELETE] Bulk delete complete - deleted: {deleted}, failed: {len(failed_keys)}, operation: delete_gallery_images")
    return DeleteSummary(deleted, failed_keys)
