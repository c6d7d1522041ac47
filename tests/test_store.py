"""Tests for the versioned entity store."""

import pytest

from catalog import Collection, NFT, Asset, EntityNotFoundError, reduce_to_latest
from catalog.tables import ADDRESS_INDEX, CATEGORY_INDEX

COLLECTION_ID = "col-1"

def sample_collection(**overrides) -> Collection:
    data = {
        "collectionId": COLLECTION_ID,
        "address": "0xabc",
        "creatorAddress": "0xcreator",
        "name": "Blue Dragons",
        "category": "art",
        "chain": "polygon",
        "isListed": True,
    }
    data.update(overrides)
    return Collection.from_item(data)

@pytest.mark.asyncio
async def test_create_stamps_first_version(collections):
    """Test that create writes version 1 with timestamps."""
    created = await collections.create(sample_collection())

    assert created.version == 1
    assert created.is_latest is True
    assert created.created_at is not None
    assert created.created_at == created.updated_at

    stored = await collections.get_version(COLLECTION_ID, 1)
    assert stored.name == "Blue Dragons"

@pytest.mark.asyncio
async def test_get_latest_returns_highest_version(collections):
    """Test that the highest version wins even when older rows stay flagged latest."""
    for version in (1, 3, 2):
        await collections.put(sample_collection(version=version, name=f"v{version}", isLatest=True))

    latest = await collections.get_latest(COLLECTION_ID)
    assert latest.version == 3
    assert latest.name == "v3"

@pytest.mark.asyncio
async def test_get_latest_unknown_id_returns_empty(collections):
    """Test that a missing entity resolves to an empty record, not an error."""
    latest = await collections.get_latest("missing")
    assert latest.is_empty
    assert latest.to_item() == {}

@pytest.mark.asyncio
async def test_append_version_merges_changes(collections):
    """Test that append_version keeps untouched fields and bumps the version."""
    first = await collections.create(sample_collection())

    second = await collections.append_version(COLLECTION_ID, {"name": "Red Dragons", "unknownKey": 1})

    assert second.version == 2
    assert second.name == "Red Dragons"
    assert second.address == "0xabc"
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at

    # The previous row is not demoted
    previous = await collections.get_version(COLLECTION_ID, 1)
    assert previous.is_latest is True
    assert previous.name == "Blue Dragons"

@pytest.mark.asyncio
async def test_append_version_unknown_entity(collections):
    """Test that appending to an unknown entity raises EntityNotFoundError."""
    with pytest.raises(EntityNotFoundError):
        await collections.append_version("missing", {"name": "x"})

@pytest.mark.asyncio
async def test_versions_increase_monotonically(collections):
    """Test that repeated appends produce consecutive versions."""
    await collections.create(sample_collection())
    for expected in range(2, 6):
        appended = await collections.append_version(COLLECTION_ID, {"description": str(expected)})
        assert appended.version == expected

    assert (await collections.get_latest(COLLECTION_ID)).version == 5

@pytest.mark.asyncio
async def test_get_by_index_returns_every_version(collections):
    """Test that index lookups are not deduplicated."""
    await collections.create(sample_collection())
    await collections.append_version(COLLECTION_ID, {"name": "v2"})

    rows = await collections.get_by_index(CATEGORY_INDEX, "art")
    assert sorted(row.version for row in rows) == [1, 2]
    assert [row.version for row in reduce_to_latest(rows)] == [2]

@pytest.mark.asyncio
async def test_get_latest_by_index(collections):
    """Test resolving the latest version through the address index."""
    await collections.create(sample_collection())
    await collections.append_version(COLLECTION_ID, {"name": "v2"})

    latest = await collections.get_latest_by_index(ADDRESS_INDEX, "0xabc")
    assert latest.version == 2
    assert (await collections.get_latest_by_index(ADDRESS_INDEX, "0xnone")).is_empty

@pytest.mark.asyncio
async def test_scan_all(collections):
    """Test that scan_all pages through the whole table."""
    for index in range(250):
        await collections.create(sample_collection(collectionId=f"col-{index}"))

    rows = await collections.scan_all()
    assert len(rows) == 250
    assert len({row.collection_id for row in rows}) == 250

@pytest.mark.asyncio
async def test_increment_latest_version(nfts):
    """Test that counters are incremented on the latest version only."""
    await nfts.create(NFT(nft_id="nft-1", token_id=1, scan_count=0))
    await nfts.append_version("nft-1", {"name": "renamed"})

    updated = await nfts.increment("nft-1", "scanCount")
    await nfts.increment("nft-1", "scanCount")

    assert updated.version == 2
    assert updated.scan_count == 1
    assert (await nfts.get_latest("nft-1")).scan_count == 2
    assert (await nfts.get_version("nft-1", 1)).scan_count == 0

@pytest.mark.asyncio
async def test_increment_unknown_entity(nfts):
    with pytest.raises(EntityNotFoundError):
        await nfts.increment("missing", "viewCount")

@pytest.mark.asyncio
async def test_unversioned_store_overwrites(services):
    """Test that assets have one row per id and writes replace it."""
    store = services.assets
    assert not store.versioned

    await store.create(Asset(asset_id="asset-1", nft_id="nft-1", visibility=False))
    await store.put(Asset(asset_id="asset-1", nft_id="nft-1", visibility=True))

    asset = await store.get_latest("asset-1")
    assert asset.visibility is True
    assert len(await store.scan_all()) == 1

@pytest.mark.asyncio
async def test_delete_fixture_row(collections):
    await collections.create(sample_collection())
    await collections.delete(COLLECTION_ID, 1)
    assert (await collections.get_latest(COLLECTION_ID)).is_empty

@pytest.mark.asyncio
async def test_curated_flag_accepts_older_field_name(collections):
    """Test that isCreatedByNFTube is read as isCurated on create and update."""
    created = Collection.from_item({"collectionId": "c1", "isCreatedByNFTube": True})
    assert created.is_curated is True
    assert created.to_item()["isCurated"] is True
    assert "isCreatedByNFTube" not in created.to_item()

    await collections.create(created)
    updated = await collections.append_version("c1", {"isCreatedByNFTube": False})
    assert updated.is_curated is False
    assert NFT.from_item({"nftId": "n1", "isCreatedByNFTube": True}).is_curated is True
