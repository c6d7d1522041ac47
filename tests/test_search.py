"""Tests for the search index and collection search."""

import pytest

from catalog import Collection, CatalogError, CatalogQueryEngine
from search import sync_collections

async def seed(services):
    store = services.collections
    await store.create(Collection(collection_id="dragons", name="The Blue Dragon", category="art",
                                  chain="polygon", is_listed=True))
    await store.create(Collection(collection_id="lizards", name="Lizards",
                                  description="Distant cousins of the blue dragon",
                                  category="art", chain="ethereum", is_listed=True))
    await store.create(Collection(collection_id="hidden", name="Blue Dragon drafts", category="art",
                                  chain="polygon", is_listed=False))
    await store.create(Collection(collection_id="qa", name="Blue Dragon QA", category="test-art",
                                  chain="polygon", is_listed=True))
    await store.create(Collection(collection_id="music", name="Blues", category="music",
                                  chain="polygon", is_listed=True))

@pytest.mark.asyncio
async def test_sync_indexes_latest_versions(services):
    """Test that sync upserts the latest version of each collection."""
    await seed(services)
    await services.collections.append_version("music", {"name": "Blue Dragon Beats"})

    count = await sync_collections(services.collections, services.search_index)
    assert count == 5

    assert "music" in await services.search_index.search("blue dragon")

@pytest.mark.asyncio
async def test_search_phrase_prefix_and_ranking(services):
    """Test that name matches rank above description matches."""
    await seed(services)
    await sync_collections(services.collections, services.search_index)

    ids = await services.search_index.search("blue dra")
    assert ids[0] in {"dragons", "hidden", "qa"}
    assert ids[-1] == "lizards"
    assert "music" not in ids

    assert await services.search_index.search("dragon blue") == []
    assert await services.search_index.search("   ") == []

@pytest.mark.asyncio
async def test_search_collections_filters(services, engine):
    """Test that search results are listed, hygienic and chain filtered."""
    await seed(services)
    await sync_collections(services.collections, services.search_index)

    results = await engine.search_collections("blue dragon")
    assert sorted(c.collection_id for c in results) == ["dragons", "lizards"]

    on_polygon = await engine.search_collections("blue dragon", chain="polygon")
    assert [c.collection_id for c in on_polygon] == ["dragons"]

    with_tests = await engine.search_collections("blue dragon", category="all", filter_test_override=True)
    assert sorted(c.collection_id for c in with_tests) == ["dragons", "lizards", "qa"]

    music = await engine.search_collections("blue", category="music")
    assert [c.collection_id for c in music] == ["music"]

@pytest.mark.asyncio
async def test_search_uses_latest_version(services, engine):
    await seed(services)
    await sync_collections(services.collections, services.search_index)
    await services.collections.append_version("dragons", {"isListed": False})

    results = await engine.search_collections("blue dragon")
    assert [c.collection_id for c in results] == ["lizards"]

@pytest.mark.asyncio
async def test_search_without_index(services):
    engine = CatalogQueryEngine(
        services.collections, services.nfts, services.assets,
        services.collection_likes, services.nft_likes, services.wallets
    )
    with pytest.raises(CatalogError):
        await engine.search_collections("blue")

@pytest.mark.asyncio
async def test_search_does_not_scan_the_index(services, monkeypatch):
    """Test that searching narrows candidates in the table instead of scanning it."""
    await seed(services)
    await sync_collections(services.collections, services.search_index)

    async def fail_scan(*args, **kwargs):
        raise AssertionError("search must not scan the whole index")

    monkeypatch.setattr(services.search_index.table, "scan_page", fail_scan)
    assert "dragons" in await services.search_index.search("blue dragon")

@pytest.mark.asyncio
async def test_upsert_stores_searchable_fields_only(services):
    await services.search_index.upsert("c1", {"name": "Name", "category": "art", "creatorAddress": "0xabc"})
    item = await services.search_index.table.get_item({"id": "c1"})
    assert item == {"id": "c1", "name": "Name", "creatorAddress": "0xabc"}
