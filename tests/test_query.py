"""Tests for the catalog query engine."""

import pytest

from catalog import (
    Asset, CatalogQuery, Collection, InvalidQueryError, NFT, Viewer, Wallet
)

OWNER = "user-owner"
OWNER_WALLET = "0xowner"

async def create_collection(store, collection_id, **fields):
    data = {"collection_id": collection_id, "category": "art", "chain": "polygon", "is_listed": True}
    data.update(fields)
    return await store.create(Collection(**data))

@pytest.mark.asyncio
async def test_query_requires_category_or_creator(engine):
    with pytest.raises(InvalidQueryError):
        await engine.query_collections(CatalogQuery())

@pytest.mark.asyncio
async def test_unlisted_hidden_from_anonymous(collections, engine):
    await create_collection(collections, "listed")
    await create_collection(collections, "unlisted", is_listed=False)

    results = await engine.query_collections(CatalogQuery(category="art"))
    assert [c.collection_id for c in results] == ["listed"]

@pytest.mark.asyncio
async def test_owner_by_user_id_sees_unlisted(collections, engine):
    """Test that the creator sees their own unlisted collection."""
    await create_collection(collections, "mine", is_listed=False, creator_address=OWNER)

    viewer = await engine.resolve_viewer(OWNER, authenticated=True)
    results = await engine.query_collections(CatalogQuery(category="art"), viewer)
    assert [c.collection_id for c in results] == ["mine"]

@pytest.mark.asyncio
async def test_wallet_override_sees_unlisted(services, collections, engine):
    """Test that a viewer controlling the creator wallet sees unlisted rows."""
    await services.wallets.put_wallet(Wallet(address=OWNER_WALLET, chain="polygon", user_id=OWNER, connected_time=1))
    await create_collection(collections, "wallet-owned", is_listed=False, creator_address=OWNER_WALLET)

    viewer = await engine.resolve_viewer(OWNER, authenticated=True)
    assert viewer.wallet_addresses == frozenset({OWNER_WALLET})

    results = await engine.query_collections(CatalogQuery(category="art"), viewer)
    assert [c.collection_id for c in results] == ["wallet-owned"]

@pytest.mark.asyncio
async def test_override_requires_authentication(collections, engine):
    await create_collection(collections, "mine", is_listed=False, creator_address=OWNER)

    viewer = await engine.resolve_viewer(OWNER, authenticated=False)
    assert await engine.query_collections(CatalogQuery(category="art"), viewer) == []

    unauthenticated = Viewer(user_id=OWNER, authenticated=False, wallet_addresses=frozenset({OWNER}))
    assert await engine.query_collections(CatalogQuery(category="art"), unauthenticated) == []

@pytest.mark.asyncio
async def test_test_categories_filtered_by_default(collections, engine):
    """Test that categories containing 'test' are hidden unless overridden."""
    await create_collection(collections, "real", category="art")
    await create_collection(collections, "qa", category="art-test")

    default = await engine.query_collections(CatalogQuery(category="all"))
    assert [c.collection_id for c in default] == ["real"]

    override = await engine.query_collections(CatalogQuery(category="all", filter_test_override=True))
    assert sorted(c.collection_id for c in override) == ["qa", "real"]

@pytest.mark.asyncio
async def test_curated_and_chain_filters(collections, engine):
    await create_collection(collections, "curated-polygon", is_curated=True)
    await create_collection(collections, "curated-eth", is_curated=True, chain="ethereum")
    await create_collection(collections, "plain")

    curated = await engine.query_collections(CatalogQuery(category="art", is_curated=True))
    assert sorted(c.collection_id for c in curated) == ["curated-eth", "curated-polygon"]

    on_eth = await engine.query_collections(CatalogQuery(category="art", is_curated=True, chain="ethereum"))
    assert [c.collection_id for c in on_eth] == ["curated-eth"]

@pytest.mark.asyncio
async def test_category_and_creator(collections, engine):
    await create_collection(collections, "a", creator_address="0x1")
    await create_collection(collections, "b", creator_address="0x2")
    await create_collection(collections, "c", creator_address="0x1", category="music")

    both = await engine.query_collections(CatalogQuery(category="art", creator_address="0x1"))
    assert [c.collection_id for c in both] == ["a"]

    by_creator = await engine.query_collections(CatalogQuery(creator_address="0x1"))
    assert sorted(c.collection_id for c in by_creator) == ["a", "c"]

@pytest.mark.asyncio
async def test_query_by_addresses_keeps_input_order(collections, engine):
    """Test that results follow the requested address order."""
    await create_collection(collections, "one", address="0xone")
    await create_collection(collections, "two", address="0xtwo")
    await create_collection(collections, "hidden", address="0xhidden", is_listed=False)
    await collections.append_version("one", {"name": "one v2"})

    results = await engine.query_collections_by_addresses(["0xtwo", "0xmissing", "0xhidden", "0xone"])
    assert [c.collection_id for c in results] == ["two", "one"]
    assert results[1].version == 2

    reversed_results = await engine.query_collections_by_addresses(["0xone", "0xtwo"])
    assert [c.collection_id for c in reversed_results] == ["one", "two"]

@pytest.mark.asyncio
async def test_query_nfts(nfts, engine):
    await nfts.create(NFT(nft_id="n1", token_id=1, collection_id="col-1", category="art", is_listed=True))
    await nfts.create(NFT(nft_id="n2", token_id=2, collection_id="col-1", category="art", is_listed=False))
    await nfts.create(NFT(nft_id="n3", token_id=3, collection_id="col-2", category="test", is_listed=True))

    by_collection = await engine.query_nfts(CatalogQuery(collection_id="col-1"))
    assert [n.nft_id for n in by_collection] == ["n1"]

    everything = await engine.query_nfts(CatalogQuery(category="all", filter_test_override=True))
    assert sorted(n.nft_id for n in everything) == ["n1", "n3"]

    with pytest.raises(InvalidQueryError):
        await engine.query_nfts(CatalogQuery())

@pytest.mark.asyncio
async def test_nft_owner_wallet_override(services, nfts, engine):
    await services.wallets.put_wallet(Wallet(address=OWNER_WALLET, chain="polygon", user_id=OWNER, connected_time=1))
    await nfts.create(NFT(nft_id="n1", token_id=1, collection_id="col-1", owner_address=OWNER_WALLET,
                          is_listed=False))

    viewer = await engine.resolve_viewer(OWNER, authenticated=True, chain="polygon")
    results = await engine.query_nfts(CatalogQuery(collection_id="col-1"), viewer)
    assert [n.nft_id for n in results] == ["n1"]

@pytest.mark.asyncio
async def test_nfts_by_address_and_token_id(nfts, engine):
    await nfts.create(NFT(nft_id="n1", token_id=1, collection_address="0xcol"))
    await nfts.create(NFT(nft_id="n2", token_id=2, collection_address="0xcol"))
    await nfts.append_version("n2", {"name": "second v2"})

    results = await engine.query_nfts_by_collection_addresses_and_token_ids(
        [("0xcol", "2"), ("0xcol", 9), ("0xcol", 1)]
    )
    assert [(n.nft_id, n.version) for n in results] == [("n2", 2), ("n1", 1)]

@pytest.mark.asyncio
async def test_nfts_by_collection_are_latest_versions(nfts, engine):
    await nfts.create(NFT(nft_id="n1", token_id=1, collection_id="col-1"))
    await nfts.append_version("n1", {"name": "v2"})
    await nfts.create(NFT(nft_id="n2", token_id=2, collection_id="col-1"))

    results = await engine.get_nfts_by_collection_id("col-1")
    assert sorted((n.nft_id, n.version) for n in results) == [("n1", 2), ("n2", 1)]
    assert await engine.count_nfts_by_collection("col-1") == 2
    assert await engine.count_nfts_by_collection("col-none") == 0

@pytest.mark.asyncio
async def test_assets_by_nft_visibility(services, engine):
    """Test that hidden assets are only returned to wallet owners."""
    await services.assets.put(Asset(asset_id="visible", nft_id="n1", visibility=True))
    await services.assets.put(Asset(asset_id="hidden", nft_id="n1", visibility=False))
    await services.wallets.put_wallet(Wallet(address=OWNER_WALLET, chain="polygon", user_id=OWNER, connected_time=1))

    public = await engine.query_assets_by_nft("n1")
    assert [a.asset_id for a in public] == ["visible"]

    owner = await engine.resolve_viewer(OWNER, authenticated=True)
    owned = await engine.query_assets_by_nft("n1", owner, creator_address="0xsomeone", wallet_address=OWNER_WALLET)
    assert sorted(a.asset_id for a in owned) == ["hidden", "visible"]

    stranger = await engine.resolve_viewer("stranger", authenticated=True)
    not_owned = await engine.query_assets_by_nft("n1", stranger, creator_address=OWNER_WALLET)
    assert [a.asset_id for a in not_owned] == ["visible"]
