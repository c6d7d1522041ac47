"""Pinning service client (Pinata compatible pinFileToIPFS)."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from catalog.exceptions import PinningError

logger = logging.getLogger(__name__)

@dataclass
class PinPayload:
    """A single file submitted as the ``file`` part of a multipart body."""
    filename: str
    content: bytes
    content_type: Optional[str] = None

class PinningClient:
    """Submits files to the pinning service and returns their content identifier."""

    def __init__(self, url: str, jwt: str = '', timeout: Optional[float] = None):
        self.url = url
        self.jwt = jwt
        self.timeout = timeout

    def _post(self, payload: PinPayload) -> requests.Response:
        headers = {}
        if self.jwt:
            headers['Authorization'] = f"Bearer {self.jwt}"
        files = {
            'file': (payload.filename, payload.content, payload.content_type or 'application/octet-stream')
        }
        return requests.post(self.url, files=files, headers=headers, timeout=self.timeout)

    async def pin(self, payload: PinPayload) -> str:
        """Pin a file.

        Returns:
            The ``IpfsHash`` reported by the service

        Raises:
            PinningError: If the request fails or the response has no hash
        """
        try:
            response = await asyncio.to_thread(self._post, payload)
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Pinning {payload.filename} failed: {e}")
            raise PinningError(f"Pinning {payload.filename} failed: {e}") from e
        except ValueError as e:
            raise PinningError(f"Pinning service returned invalid JSON: {e}") from e

        ipfs_hash = result.get('IpfsHash') if isinstance(result, dict) else None
        if not ipfs_hash:
            raise PinningError(f"Pinning service response has no IpfsHash: {result}")

        logger.info(f"Pinned {payload.filename} as {ipfs_hash}")
        return ipfs_hash
