"""Key-addressed object storage."""

from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..api.exceptions import BlobConflict, BlobIOError, BlobNotFound
from ..config.config import StorageConfig

NOT_FOUND_CODES = {'404', 'NotFound', 'NoSuchKey'}
CONFLICT_CODES = {'412', 'PreconditionFailed', 'ConditionalRequestConflict'}


class BlobStore(Protocol):
    """Object storage boundary used by the relocator."""

    def head(self, key: str) -> bool:
        ...

    def get(self, key: str) -> bytes:
        ...

    def put(self, key: str, body: bytes, content_type: str) -> None:
        ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get('Error', {}).get('Code', ''))


def _is_not_found(error: ClientError) -> bool:
    status = error.response.get('ResponseMetadata', {}).get('HTTPStatusCode')
    return _error_code(error) in NOT_FOUND_CODES or status == 404


class S3BlobStore:
    """S3-backed blob store for a single bucket."""

    def __init__(self, config: StorageConfig, client=None):
        if not config.bucket:
            raise ValueError('S3 bucket is required')
        self.bucket = config.bucket
        if client is None:
            kwargs = {}
            if config.region:
                kwargs['region_name'] = config.region
            if config.access_key_id and config.secret_access_key:
                kwargs['aws_access_key_id'] = config.access_key_id
                kwargs['aws_secret_access_key'] = config.secret_access_key
            client = boto3.client('s3', **kwargs)
        self.client = client
        logger.info(f'Initialized S3 blob store for bucket {self.bucket}')

    def head(self, key: str) -> bool:
        """Return True if the key exists.

        Raises:
            BlobIOError: If existence cannot be determined
        """
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise BlobIOError(f'Failed to check existence of {key}: {e}', key=key)
        except BotoCoreError as e:
            raise BlobIOError(f'Failed to check existence of {key}: {e}', key=key)

    def get(self, key: str) -> bytes:
        """Fetch an object's content.

        Raises:
            BlobNotFound: If the key does not exist
            BlobIOError: On any other failure
        """
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read()
        except ClientError as e:
            if _is_not_found(e):
                raise BlobNotFound(f'{key} does not exist', key=key)
            raise BlobIOError(f'Failed to fetch {key}: {e}', key=key)
        except BotoCoreError as e:
            raise BlobIOError(f'Failed to fetch {key}: {e}', key=key)

    def put(self, key: str, body: bytes, content_type: str) -> None:
        """Write an object only if the key does not exist yet.

        Raises:
            BlobConflict: If another writer created the key first
            BlobIOError: If the write fails
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                IfNoneMatch='*',
            )
        except ClientError as e:
            if _error_code(e) in CONFLICT_CODES:
                raise BlobConflict(f'{key} already exists', key=key)
            raise BlobIOError(f'Failed to write {key}: {e}', key=key)
        except BotoCoreError as e:
            raise BlobIOError(f'Failed to write {key}: {e}', key=key)

    def test_connection(self) -> bool:
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f'Bucket check failed: {e}')
            return False
