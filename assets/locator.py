"""Locate the S3 object behind an asset URL."""
import re
from typing import NamedTuple
from urllib.parse import unquote

class S3Location(NamedTuple):
    bucket: str
    key: str
    region: str

    @property
    def is_resolved(self) -> bool:
        return bool(self.bucket and self.key)

# Later patterns take precedence over earlier ones
_PATH_STYLE = re.compile(r'^https?://s3\.amazonaws\.com/([^/]+)/?(.*?)$')
_REGIONAL_PATH_STYLE = re.compile(r'^https?://s3-([^.]+)\.amazonaws\.com/([^/]+)/?(.*?)$')
_VIRTUAL_HOST = re.compile(r'^https?://([^.]+)\.s3\.amazonaws\.com/?(.*?)$')
_REGIONAL_VIRTUAL_HOST = re.compile(r'^https?://([^.]+)\.(?:s3-|s3\.)([^.]+)\.amazonaws\.com/?(.*?)$')

def parse_s3_url(url: str) -> S3Location:
    """Parse bucket, key and region from an S3 object URL.

    Supports path style (``s3.amazonaws.com/bucket/key``), regional path style
    (``s3-region.amazonaws.com/bucket/key``), virtual host style
    (``bucket.s3.amazonaws.com/key``) and regional virtual host style
    (``bucket.s3-region.amazonaws.com/key`` or ``bucket.s3.region.amazonaws.com/key``).
    The URL is percent-decoded before matching.

    Args:
        url: Asset URL

    Returns:
        S3Location with empty strings for the parts that could not be found
    """
    decoded = unquote(url or '')
    location = S3Location('', '', '')

    match = _PATH_STYLE.match(decoded)
    if match:
        location = S3Location(match.group(1), match.group(2), '')

    match = _REGIONAL_PATH_STYLE.match(decoded)
    if match:
        location = S3Location(match.group(2), match.group(3), match.group(1))

    match = _VIRTUAL_HOST.match(decoded)
    if match:
        location = S3Location(match.group(1), match.group(2), '')

    match = _REGIONAL_VIRTUAL_HOST.match(decoded)
    if match:
        location = S3Location(match.group(1), match.group(3), match.group(2))

    return location
