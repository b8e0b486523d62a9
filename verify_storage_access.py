"""
Object Store Verification Script

This script verifies that the configured bucket is usable by the event
album engine. It checks:
1. Bucket configuration is present
2. The bucket is reachable with the configured credentials
3. A generated photo can be uploaded under a throwaway event
4. The photo shows up in the event gallery listing
5. The public URL serves the photo
6. The photo can be deleted again

Run this before handing devices to event organizers.
"""

import io
import os
import sys
import tempfile
import uuid

from PIL import Image
from botocore.exceptions import BotoCoreError, ClientError

from event_album import config
from event_album.downloader import download_all
from event_album.errors import AlbumError
from event_album.gallery import GalleryView
from event_album.lifecycle import delete_gallery_images
from event_album.session import UserSession
from event_album.storage import ObjectStore
from event_album.uploader import LocalImage, upload_event_images


def make_test_photo(color=(64, 160, 200)):
    buffer = io.BytesIO()
    Image.new('RGB', (64, 64), color).save(buffer, format='PNG')
    return buffer.getvalue()


class StorageAccessVerifier:
    def __init__(self, store=None, owner_email=None):
        self.store = store
        self.session = UserSession(email=owner_email or os.environ.get("VERIFY_OWNER_EMAIL", "verify@example.com"))
        self.event_id = f"verify_{uuid.uuid4().hex[:8]}"
        self.view = None
        self.uploaded_urls = []
        self.checks_passed = 0
        self.checks_failed = 0

    def _passed(self, message):
        print(f"  ✅ {message}")
        self.checks_passed += 1
        return True

    def _failed(self, message):
        print(f"  ❌ {message}")
        self.checks_failed += 1
        return False

    def check_configuration(self):
        """Check bucket settings"""
        print("\n🔍 Checking configuration...")
        print(f"  bucket: {config.S3_BUCKET_NAME}")
        print(f"  public host: {config.S3_STORAGE_HOST}")
        if config.S3_ENDPOINT_URL:
            print(f"  endpoint: {config.S3_ENDPOINT_URL}")
        if self.store is None:
            self.store = ObjectStore.from_config()
        return self._passed("Object store client created")

    def check_bucket_reachable(self):
        """Check the bucket answers with the configured credentials"""
        print("\n🔍 Checking bucket access...")
        try:
            self.store.client.head_bucket(Bucket=self.store.bucket)
        except (BotoCoreError, ClientError) as e:
            return self._failed(f"Bucket not reachable: {e}")
        return self._passed(f"Bucket {self.store.bucket} reachable")

    def check_upload(self):
        """Upload a generated photo under a throwaway event"""
        print("\n🔍 Checking upload...")
        photo = LocalImage.from_bytes('verify_photo.png', make_test_photo(), 'image/png')
        try:
            result = upload_event_images(self.store, self.session, [photo], event_id=self.event_id)
        except AlbumError as e:
            return self._failed(f"Upload failed: {e.message}")
        self.uploaded_urls = result.urls
        return self._passed(f"Uploaded {result.keys[0]}")

    def check_listing(self):
        """Check the uploaded photo is listed"""
        print("\n🔍 Checking gallery listing...")
        self.view = GalleryView(self.store, self.session, self.event_id)
        try:
            self.view.refresh()
        except AlbumError as e:
            return self._failed(f"Listing failed: {e.message}")
        if len(self.view) != len(self.uploaded_urls):
            return self._failed(f"Expected {len(self.uploaded_urls)} photo(s), listed {len(self.view)}")
        return self._passed(f"Listed {len(self.view)} photo(s)")

    def check_public_download(self):
        """Check the public URL serves the photo"""
        print("\n🔍 Checking public download...")
        if not self.uploaded_urls:
            return self._failed("Nothing uploaded to download")
        with tempfile.TemporaryDirectory() as temp_dir:
            summary = download_all(self.uploaded_urls, temp_dir)
        if summary.failed_urls:
            print("  💡 Objects may need a public-read bucket policy")
            return self._failed(summary.message)
        return self._passed(summary.message)

    def check_delete(self):
        """Remove everything the verification uploaded"""
        print("\n🔍 Checking delete...")
        if self.view is None or not len(self.view):
            return self._failed("Nothing listed to delete")
        summary = delete_gallery_images(self.store, self.view, self.view.keys())
        if summary.failed_keys:
            return self._failed(f"Failed to delete {len(summary.failed_keys)} object(s)")
        return self._passed(f"Deleted {summary.deleted} object(s)")

    def print_summary(self):
        """Print summary of checks"""
        print("\n" + "=" * 60)
        print("Verification Summary")
        print("=" * 60)
        print(f"✅ Checks passed: {self.checks_passed}")
        print(f"❌ Checks failed: {self.checks_failed}")

        if self.checks_failed == 0:
            print("\n🎉 All checks passed! The bucket is ready for event uploads.")
            return True
        print(f"\n⚠️  Some checks failed. Leftover test objects live under event {self.event_id}.")
        return False

    def run_all_checks(self):
        """Run all verification checks"""
        print("=" * 60)
        print("Object Store Verification")
        print("=" * 60)

        self.check_configuration()
        if self.check_bucket_reachable() and self.check_upload():
            self.check_listing()
            self.check_public_download()
            self.check_delete()

        return self.print_summary()


if __name__ == "__main__":
    config.configure_logging()
    verifier = StorageAccessVerifier()
    success = verifier.run_all_checks()
    sys.exit(0 if success else 1)
