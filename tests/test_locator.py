"""Tests for S3 URL parsing."""

import pytest

from assets import parse_s3_url

@pytest.mark.parametrize("url, expected", [
    ("https://s3.amazonaws.com/media-bucket/art/cat.png", ("media-bucket", "art/cat.png", "")),
    ("http://s3-us-west-1.amazonaws.com/media-bucket/art/cat.png",
     ("media-bucket", "art/cat.png", "us-west-1")),
    ("https://media-bucket.s3.amazonaws.com/art/cat.png", ("media-bucket", "art/cat.png", "")),
    ("https://media-bucket.s3-us-west-1.amazonaws.com/art/cat.png",
     ("media-bucket", "art/cat.png", "us-west-1")),
    ("https://media-bucket.s3.eu-central-1.amazonaws.com/art/cat.png",
     ("media-bucket", "art/cat.png", "eu-central-1")),
])
def test_supported_url_shapes(url, expected):
    location = parse_s3_url(url)
    assert tuple(location) == expected
    assert location.is_resolved

def test_url_is_percent_decoded():
    location = parse_s3_url("https://media-bucket.s3.amazonaws.com/art/my%20cat.png")
    assert location.key == "art/my cat.png"

@pytest.mark.parametrize("url", [
    "https://example.com/cat.png",
    "ipfs://QmHash",
    "",
])
def test_unrecognized_urls(url):
    location = parse_s3_url(url)
    assert tuple(location) == ("", "", "")
    assert not location.is_resolved

def test_bucket_without_key_is_not_resolved():
    location = parse_s3_url("https://s3.amazonaws.com/media-bucket")
    assert location.bucket == "media-bucket"
    assert location.key == ""
    assert not location.is_resolved
