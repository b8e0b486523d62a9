"""
Tests for the storage key layout and the event links.

Key uniqueness is checked with Hypothesis across arbitrary owners,
events and filenames.
"""

import string
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from hypothesis import given, settings, strategies as st

from event_album.errors import InvalidIdentity, ValidationError
from event_album.keys import (
    IMAGES, SELFIES, build_object_key, display_path, event_prefix, key_from_url,
    new_event_id, parse_object_key, public_url, sanitize_owner_folder, unique_filename,
    upload_token
)
from event_album.links import absolute_link, gallery_path, selfie_upload_path


# ============================================================================
# Hypothesis Strategies
# ============================================================================

owner_strategy = st.text(
    alphabet=string.ascii_letters + string.digits + '@._+-',
    min_size=1,
    max_size=40
).filter(lambda s: s.strip())

event_id_strategy = st.text(
    alphabet=string.ascii_letters + string.digits + '_-',
    min_size=1,
    max_size=30
).filter(lambda s: s not in ('.', '..'))

filename_strategy = st.builds(
    lambda base, ext: base + ext,
    st.text(alphabet=string.ascii_letters + string.digits + ' _-()', min_size=1, max_size=30),
    st.sampled_from(['.jpg', '.jpeg', '.png', '.JPG'])
)

media_class_strategy = st.sampled_from([IMAGES, SELFIES])


# ============================================================================
# Key layout
# ============================================================================

def test_build_object_key_layout():
    key = build_object_key('a@b.com', 'evt123', IMAGES, 'photo1.png', token=1700000000000)
    assert key == 'events/a@b.com/evt123/images/1700000000000-photo1.png'


def test_build_object_key_mints_token_when_missing():
    key = build_object_key('a@b.com', 'evt123', SELFIES, 'me.jpg')
    stored_name = key.rsplit('/', 1)[-1]
    token, _, filename = stored_name.partition('-')
    assert key.startswith('events/a@b.com/evt123/selfies/')
    assert token.isdigit()
    assert filename == 'me.jpg'


@pytest.mark.parametrize('owner', ['', '   ', None])
def test_empty_owner_is_invalid_identity(owner):
    with pytest.raises(InvalidIdentity):
        build_object_key(owner, 'evt123', IMAGES, 'photo.png')


def test_owner_with_path_separator_is_invalid_identity():
    with pytest.raises(InvalidIdentity):
        build_object_key('team/alice', 'evt123', IMAGES, 'photo.png')


@pytest.mark.parametrize('event_id', ['', '..', 'a/b', 'a\\b'])
def test_bad_event_id_is_rejected(event_id):
    with pytest.raises(ValidationError):
        build_object_key('a@b.com', event_id, IMAGES, 'photo.png')


def test_unknown_media_class_is_rejected():
    with pytest.raises(ValidationError):
        build_object_key('a@b.com', 'evt123', 'videos', 'clip.mp4')


def test_directory_components_are_stripped_from_filename():
    assert unique_filename('C:\\Users\\bob\\photo.png', token=5) == '5-photo.png'
    assert unique_filename('../../etc/photo.png', token=5) == '5-photo.png'


def test_empty_filename_is_rejected():
    with pytest.raises(ValidationError):
        unique_filename('', token=5)


def test_event_prefix():
    assert event_prefix('a@b.com', 'evt123') == 'events/a@b.com/evt123/'
    assert event_prefix('a@b.com', 'evt123', IMAGES) == 'events/a@b.com/evt123/images/'


def test_new_event_id_format():
    event_id = new_event_id()
    assert event_id.startswith('event_')
    assert len(event_id) == len('event_') + 8
    assert new_event_id() != event_id


# ============================================================================
# Upload tokens
# ============================================================================

def test_upload_tokens_strictly_increase():
    tokens = [upload_token() for _ in range(1000)]
    assert tokens == sorted(tokens)
    assert len(set(tokens)) == len(tokens)


def test_upload_tokens_unique_across_threads():
    with ThreadPoolExecutor(max_workers=8) as executor:
        tokens = list(executor.map(lambda _: upload_token(), range(2000)))
    assert len(set(tokens)) == len(tokens)


# ============================================================================
# Property 1: Keys carry every component in the fixed order
# ============================================================================

@settings(max_examples=200)
@given(
    owner=owner_strategy,
    event_id=event_id_strategy,
    media_class=media_class_strategy,
    filename=filename_strategy
)
def test_property_key_contains_components_in_order(owner, event_id, media_class, filename):
    key = build_object_key(owner, event_id, media_class, filename)
    parts = key.split('/', 4)

    assert parts[0] == 'events'
    assert parts[1] == owner
    assert parts[2] == event_id
    assert parts[3] == media_class
    assert parts[4].split('-', 1)[1] == filename


# ============================================================================
# Property 2: Different filenames or instants never share a key
# ============================================================================

@settings(max_examples=200)
@given(
    owner=owner_strategy,
    event_id=event_id_strategy,
    filenames=st.lists(filename_strategy, min_size=2, max_size=10)
)
def test_property_keys_never_collide(owner, event_id, filenames):
    keys = [build_object_key(owner, event_id, IMAGES, name) for name in filenames]
    assert len(set(keys)) == len(keys)


@given(first=filename_strategy, second=filename_strategy)
def test_property_same_token_different_filename(first, second):
    same = build_object_key('a@b.com', 'evt', IMAGES, first, token=42) == \
        build_object_key('a@b.com', 'evt', IMAGES, second, token=42)
    assert same == (first == second)


# ============================================================================
# Key parsing and public URLs
# ============================================================================

def test_parse_object_key():
    media = parse_object_key('events/a@b.com/evt123/images/1700000000000-photo1.png')

    assert media.owner_identity == 'a@b.com'
    assert media.event_id == 'evt123'
    assert media.media_class == IMAGES
    assert media.filename == 'photo1.png'
    assert media.content_type == 'image/png'
    assert media.uploaded_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_parse_object_key_keeps_dashes_in_filename():
    media = parse_object_key('events/a@b.com/evt/selfies/12-my-best-photo.jpg')
    assert media.filename == 'my-best-photo.jpg'


@pytest.mark.parametrize('key', [
    'users/a@b.com/evt/images/1-x.png',
    'events/a@b.com/evt/images/x.png',
    'events/a@b.com/evt/videos/1-x.mp4',
    'events/a@b.com/evt/1-x.png',
])
def test_parse_object_key_rejects_foreign_keys(key):
    with pytest.raises(ValueError):
        parse_object_key(key)


def test_public_url_format():
    url = public_url('events/a@b.com/evt123/images/1-photo1.png', 'ps-pics', 's3.amazonaws.com')
    assert url == 'https://ps-pics.s3.amazonaws.com/events/a@b.com/evt123/images/1-photo1.png'


def test_public_url_encodes_spaces():
    url = public_url('events/a@b.com/evt/images/1-my photo.png', 'ps-pics', 's3.amazonaws.com')
    assert url.endswith('/1-my%20photo.png')


@settings(max_examples=100)
@given(owner=owner_strategy, event_id=event_id_strategy, filename=filename_strategy)
def test_property_key_recoverable_from_public_url(owner, event_id, filename):
    key = build_object_key(owner, event_id, IMAGES, filename)
    url = public_url(key, 'ps-pics', 's3.amazonaws.com')
    assert key_from_url(url, 'ps-pics', 's3.amazonaws.com') == key


def test_key_from_url_other_bucket():
    assert key_from_url('https://other.s3.amazonaws.com/events/x', 'ps-pics', 's3.amazonaws.com') is None


# ============================================================================
# Display paths
# ============================================================================

def test_sanitize_owner_folder():
    assert sanitize_owner_folder('a.b+c@mail.com') == 'a_b_c_mail_com'


@given(owner=st.text(min_size=1, max_size=40))
def test_property_sanitized_folder_is_alphanumeric(owner):
    folder = sanitize_owner_folder(owner)
    assert len(folder) == len(owner)
    assert all(c.isascii() and (c.isalnum() or c == '_') for c in folder)


def test_display_path():
    assert display_path('organizer', 'a@b.com', '1-photo.png') == 'organizer/a_b_com/1-photo.png'


# ============================================================================
# Event links
# ============================================================================

def test_event_links():
    assert selfie_upload_path('evt123') == '/upload_selfie/evt123'
    assert gallery_path('evt123') == '/view-event/evt123'


def test_absolute_link_for_qr_payload():
    link = absolute_link('https://album.example.com/', selfie_upload_path('evt123'))
    assert link == 'https://album.example.com/upload_selfie/evt123'
