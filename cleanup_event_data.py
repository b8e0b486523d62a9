"""
Script to delete every photo and selfie of one event from the album bucket.

The event disappears with its last object: there is no separate event
record to remove.

USE WITH CAUTION - THIS CANNOT BE UNDONE!

Usage:
    python cleanup_event_data.py <owner-email> <event-id>
"""

import sys

from event_album import config
from event_album.errors import AlbumError
from event_album.gallery import GalleryView
from event_album.lifecycle import delete_gallery_images
from event_album.session import UserSession
from event_album.storage import ObjectStore


def cleanup_event_data(owner_email, event_id, store=None, confirm=input):
    """Delete all images of one event. Returns the DeleteSummary, or None when cancelled."""
    store = store or ObjectStore.from_config()
    session = UserSession(email=owner_email)

    print("=" * 60)
    print("Event Album Cleanup Script")
    print("=" * 60)

    view = GalleryView(store, session, event_id)
    try:
        view.refresh()
    except AlbumError as e:
        print(f"\n❌ Could not list event {event_id}: {e.message}")
        return None

    if not len(view):
        print(f"\nℹ️  No photos found for event {event_id}")
        return None

    print(f"\nThis will DELETE {len(view)} photo(s) from:")
    print(f"  bucket: {store.bucket}")
    print(f"  event:  {event_id} (owner {session.owner_identity})")
    print("\n⚠️  WARNING: THIS CANNOT BE UNDONE! ⚠️\n")

    answer = confirm(f"Type '{event_id}' to confirm: ")
    if answer != event_id:
        print("\n❌ Cleanup cancelled.")
        return None

    print("\n🗑️  Starting cleanup...\n")
    summary = delete_gallery_images(store, view, view.keys())

    print("\n" + "=" * 60)
    if summary.failed_keys:
        print(f"⚠️  Deleted {summary.deleted} photo(s), {len(summary.failed_keys)} failed:")
        for key in summary.failed_keys:
            print(f"  - {key}")
    else:
        print(f"✅ Cleanup complete! Deleted {summary.deleted} photo(s).")
    print("=" * 60)
    return summary


if __name__ == "__main__":
    config.configure_logging()
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)
    result = cleanup_event_data(sys.argv[1], sys.argv[2])
    sys.exit(0 if result is None or not result.failed_keys else 1)
