"""Blob storage on S3 via boto3.

boto3 is blocking, so every S3 call runs in a worker thread. Clients are
created on the event loop thread only, since a boto3 Session is not safe to
share between threads; the clients themselves are.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from catalog.exceptions import BlobStorageError

logger = logging.getLogger(__name__)

PRESIGNED_URL_EXPIRY = 3600

@dataclass
class BlobObject:
    body: bytes
    content_type: Optional[str] = None

class BlobStorage:
    """Reads source media and writes metadata documents in S3."""

    def __init__(self, region: Optional[str] = None, session: Optional[boto3.Session] = None):
        self.region = region or None
        self._session = session or boto3.Session(region_name=self.region)
        self._clients: Dict[Optional[str], Any] = {}

    def _client(self, region: Optional[str] = None):
        region = region or self.region
        if region not in self._clients:
            self._clients[region] = self._session.client('s3', region_name=region)
        return self._clients[region]

    @staticmethod
    def _read_object(client, bucket: str, key: str) -> BlobObject:
        response = client.get_object(Bucket=bucket, Key=key)
        return BlobObject(body=response['Body'].read(), content_type=response.get('ContentType'))

    async def get_object(self, bucket: str, key: str, region: Optional[str] = None) -> BlobObject:
        """Fetch an object's bytes and content type.

        Raises:
            BlobStorageError: If the object cannot be read
        """
        try:
            client = self._client(region)
            return await asyncio.to_thread(self._read_object, client, bucket, key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to read s3://{bucket}/{key}: {e}")
            raise BlobStorageError(f"Failed to read s3://{bucket}/{key}: {e}") from e

    async def put_json(self, bucket: str, key: str, document: Dict[str, Any]) -> None:
        """Upload a JSON document.

        Raises:
            BlobStorageError: If the upload fails
        """
        body = json.dumps(document).encode('utf-8')
        try:
            client = self._client()
            await asyncio.to_thread(
                client.put_object,
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType='application/json'
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to write s3://{bucket}/{key}: {e}")
            raise BlobStorageError(f"Failed to write s3://{bucket}/{key}: {e}") from e

    async def presign_put(self, bucket: str, key: str, content_type: Optional[str] = None) -> str:
        """Create a presigned URL a client can PUT the object to.

        Raises:
            BlobStorageError: If the URL cannot be signed
        """
        params = {'Bucket': bucket, 'Key': key}
        if content_type:
            params['ContentType'] = content_type
        try:
            client = self._client()
            return await asyncio.to_thread(
                client.generate_presigned_url,
                'put_object',
                Params=params,
                ExpiresIn=PRESIGNED_URL_EXPIRY
            )
        except (ClientError, BotoCoreError) as e:
            raise BlobStorageError(f"Failed to presign s3://{bucket}/{key}: {e}") from e
