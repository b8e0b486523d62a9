"""
Test to verify structured logging across the upload, listing, delete and
download paths. Every record carries a [TAG], the operation name and the
event id / filename / key it concerns.
"""
import logging
from unittest.mock import MagicMock

import pytest

from event_album.fakes import make_local_image
from event_album.downloader import download_all, filename_from_url
from event_album.errors import (
    AuthenticationRequired, InvalidIdentity, ListingError, TransferError, ValidationError
)
from event_album.gallery import list_event_images
from event_album.keys import build_object_key, unique_filename
from event_album.lifecycle import delete_object
from event_album.session import UserSession
from event_album.uploader import upload_event_images


def messages(caplog):
    return [record.message for record in caplog.records]


def test_upload_logs_context(store, session, caplog):
    """Test that a successful upload logs event id, filename and operation"""
    with caplog.at_level(logging.INFO):
        result = upload_event_images(store, session, [make_local_image('photo1.png')], event_id='evt123')

    success = [m for m in messages(caplog) if '[PHOTO_UPLOAD] Upload success' in m]
    assert len(success) == 1
    assert 'event_id: evt123' in success[0]
    assert 'filename: photo1.png' in success[0]
    assert f"key: {result.keys[0]}" in success[0]
    assert 'operation: upload_object' in success[0]


def test_selfie_exclusion_logged_as_warning(store, session, caplog):
    """Test that excluded selfies are reported at WARNING level"""
    files = [make_local_image('photo1.png'), make_local_image('selfie_bob.jpg')]

    with caplog.at_level(logging.WARNING):
        upload_event_images(store, session, files, event_id='evt123')

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert any('selfie_bob.jpg' in r.message for r in warnings)


def test_validation_failure_logged(store, session, caplog):
    """Test that a rejected file is logged with its content type and size"""
    doc = make_local_image('notes.txt', 'text/plain')

    with caplog.at_level(logging.WARNING):
        with pytest.raises(ValidationError):
            upload_event_images(store, session, [doc], event_id='evt123')

    assert any('Validation failed' in m and 'content_type: text/plain' in m for m in messages(caplog))


def test_missing_identity_logged_as_security(caplog):
    """Test that an unauthenticated request is logged as a security event"""
    with caplog.at_level(logging.WARNING):
        with pytest.raises(AuthenticationRequired):
            UserSession().owner_identity

    assert any('[SECURITY]' in m and 'resolve_owner_identity' in m for m in messages(caplog))


def test_owner_with_separator_logged_as_security(caplog):
    with caplog.at_level(logging.WARNING):
        with pytest.raises(InvalidIdentity):
            build_object_key('team/alice', 'evt123', 'images', 'a.png')

    assert any('[SECURITY]' in m and 'team/alice' in m for m in messages(caplog))


def test_filename_sanitization_logged_as_security(caplog):
    """Test that directory components in a local filename are logged"""
    with caplog.at_level(logging.WARNING):
        unique_filename('../../photo.png', token=1)
        filename_from_url('https://ps-pics.s3.amazonaws.com/..%2Fphoto.png')

    security = [m for m in messages(caplog) if '[SECURITY]' in m]
    assert len(security) == 2


def test_listing_logs_count_and_failure(store, session, caplog):
    """Test that listing logs the image count and wraps store failures"""
    upload_event_images(store, session, [make_local_image('photo1.png')], event_id='evt123')

    with caplog.at_level(logging.INFO):
        list_event_images(store, session, 'evt123')
    assert any('[PHOTO_AGGREGATION] Found 1 images - event_id: evt123' in m for m in messages(caplog))

    caplog.clear()
    store.fail_list = True
    with caplog.at_level(logging.ERROR):
        with pytest.raises(ListingError):
            list_event_images(store, session, 'evt123')
    assert any('[PHOTO_AGGREGATION] Listing failed' in m for m in messages(caplog))


def test_delete_logs_missing_key(store, caplog):
    with caplog.at_level(logging.ERROR):
        with pytest.raises(TransferError):
            delete_object(store, 'events/a@b.com/evt123/images/1-gone.png')

    assert any('[PHOTO_DELETE] Photo not found' in m and '1-gone.png' in m for m in messages(caplog))


def test_download_failure_logged_per_url(tmp_path, caplog):
    """Test that each failed download is logged with its URL"""
    http = MagicMock()
    http.get.return_value.ok = False
    http.get.return_value.status_code = 500
    http.get.return_value.reason = 'Internal Server Error'
    url = 'https://ps-pics.s3.amazonaws.com/events/a@b.com/evt123/images/1-a.png'

    with caplog.at_level(logging.ERROR):
        download_all([url], str(tmp_path), http=http, sleep=MagicMock())

    assert any(f"Failed to download image from {url}" in m for m in messages(caplog))
