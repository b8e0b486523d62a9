import logging

from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError

from event_album import config
from event_album.keys import public_url

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = ('404', 'NoSuchKey', 'NotFound')


class ObjectStore:
    """
    Thin wrapper around a boto3 S3 client bound to one bucket.

    botocore exceptions are not translated here; the upload, gallery and
    lifecycle modules wrap them with the context of the operation.
    """

    def __init__(self, client, bucket, storage_host, part_size=None):
        self.client = client
        self.bucket = bucket
        self.storage_host = storage_host
        self.part_size = part_size or config.UPLOAD_PART_SIZE_BYTES

    @classmethod
    def from_config(cls, client=None):
        return cls(
            client=client or config.create_s3_client(),
            bucket=config.S3_BUCKET_NAME,
            storage_host=config.S3_STORAGE_HOST,
            part_size=config.UPLOAD_PART_SIZE_BYTES
        )

    def transfer_config(self):
        # Anything above one part goes multipart; the transfer manager
        # aborts the multipart upload if a part fails
        return TransferConfig(
            multipart_threshold=self.part_size,
            multipart_chunksize=self.part_size
        )

    def put(self, key, body, content_type, metadata=None):
        logger.info(f"[STORAGE] Uploading object - bucket: {self.bucket}, key: {key}, content_type: {content_type}, operation: put")
        self.client.upload_fileobj(
            body,
            self.bucket,
            key,
            ExtraArgs={
                'ContentType': content_type,
                'Metadata': dict(metadata or {})
            },
            Config=self.transfer_config()
        )
        return key

    def list_keys(self, prefix):
        """Every key under prefix, following continuation tokens until exhausted."""
        keys = []
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get('Contents', []):
                keys.append(obj['Key'])
        logger.info(f"[STORAGE] Listed {len(keys)} keys - bucket: {self.bucket}, prefix: {prefix}, operation: list")
        return keys

    def any_key(self, prefix):
        """True when at least one object lives under prefix. Reads a single key."""
        response = self.client.list_objects_v2(Bucket=self.bucket, Prefix=prefix, MaxKeys=1)
        return bool(response.get('Contents'))

    def list_prefixes(self, prefix):
        """Immediate child 'folders' of prefix."""
        prefixes = []
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter='/'):
            for entry in page.get('CommonPrefixes', []):
                prefixes.append(entry['Prefix'])
        return prefixes

    def exists(self, key):
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as ce:
            if ce.response.get('Error', {}).get('Code') in _MISSING_KEY_CODES:
                return False
            raise

    def delete(self, key):
        logger.info(f"[STORAGE] Deleting object - bucket: {self.bucket}, key: {key}, operation: delete")
        self.client.delete_object(Bucket=self.bucket, Key=key)

    def public_url(self, key):
        return public_url(key, self.bucket, self.storage_host)
