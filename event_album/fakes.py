"""
In-memory stand-ins used by the test suite: a dict-backed object store
and real image payloads generated with Pillow.
"""
import io
import threading

from botocore.exceptions import ClientError
from PIL import Image

from event_album.keys import public_url
from event_album.uploader import LocalImage

BUCKET = 'ps-pics'
STORAGE_HOST = 's3.amazonaws.com'


def client_error(code='InternalError', operation='PutObject', message='Simulated store failure'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


class FakeObjectStore:
    """
    Dict-backed replacement for ObjectStore.

    ``fail_put_for`` holds filename suffixes whose upload raises a
    ClientError; ``fail_list`` / ``fail_delete`` make those calls raise.
    """

    def __init__(self, bucket=BUCKET, storage_host=STORAGE_HOST):
        self.bucket = bucket
        self.storage_host = storage_host
        self.objects = {}
        self.calls = []
        self.fail_put_for = set()
        self.fail_list = False
        self.fail_delete = False
        self._lock = threading.Lock()

    def _record(self, operation, value):
        with self._lock:
            self.calls.append((operation, value))

    @property
    def put_keys(self):
        return [value for operation, value in self.calls if operation == 'put']

    def put(self, key, body, content_type, metadata=None):
        self._record('put', key)
        if any(key.endswith(name) for name in self.fail_put_for):
            raise client_error()
        with self._lock:
            self.objects[key] = {
                'body': body.read(),
                'content_type': content_type,
                'metadata': dict(metadata or {})
            }
        return key

    def list_keys(self, prefix):
        self._record('list', prefix)
        if self.fail_list:
            raise client_error('AccessDenied', 'ListObjectsV2', 'Access Denied')
        return sorted(key for key in self.objects if key.startswith(prefix))

    def any_key(self, prefix):
        self._record('any_key', prefix)
        if self.fail_list:
            raise client_error('AccessDenied', 'ListObjectsV2', 'Access Denied')
        return any(key.startswith(prefix) for key in self.objects)

    def list_prefixes(self, prefix):
        self._record('list_prefixes', prefix)
        if self.fail_list:
            raise client_error('AccessDenied', 'ListObjectsV2', 'Access Denied')
        children = set()
        for key in self.objects:
            if key.startswith(prefix) and '/' in key[len(prefix):]:
                children.add(prefix + key[len(prefix):].split('/', 1)[0] + '/')
        return sorted(children)

    def exists(self, key):
        return key in self.objects

    def delete(self, key):
        self._record('delete', key)
        if self.fail_delete:
            raise client_error('AccessDenied', 'DeleteObject', 'Access Denied')
        self.objects.pop(key, None)

    def public_url(self, key):
        return public_url(key, self.bucket, self.storage_host)


def make_image_bytes(fmt='PNG', color=(200, 40, 90)):
    buffer = io.BytesIO()
    Image.new('RGB', (8, 8), color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_local_image(filename, content_type='image/png', size=None):
    """LocalImage with a real payload; ``size`` overrides the declared size."""
    fmt = 'JPEG' if content_type == 'image/jpeg' else 'PNG'
    image = LocalImage.from_bytes(filename, make_image_bytes(fmt), content_type)
    if size is not None:
        image.size = size
    return image
