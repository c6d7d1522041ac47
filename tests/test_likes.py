"""Tests for like relations."""

import pytest

from catalog import Collection, NFT

USER_ID = "user-1"

@pytest.mark.asyncio
async def test_like_is_idempotent(services):
    """Test that liking twice leaves a single relation."""
    likes = services.collection_likes

    await likes.like("col-1", USER_ID)
    await likes.like("col-1", USER_ID)

    assert await likes.is_liked("col-1", USER_ID)
    assert len(await likes.list_by_user(USER_ID)) == 1

@pytest.mark.asyncio
async def test_unlike_is_idempotent(services):
    """Test that unliking removes the relation and tolerates repeats."""
    likes = services.nft_likes

    await likes.like("nft-1", USER_ID)
    await likes.unlike("nft-1", USER_ID)
    await likes.unlike("nft-1", USER_ID)
    await likes.unlike("never-liked", USER_ID)

    assert not await likes.is_liked("nft-1", USER_ID)
    assert await likes.get_relation("nft-1", USER_ID) is None

@pytest.mark.asyncio
async def test_relation_fields(services):
    relation = await services.nft_likes.like("nft-1", USER_ID)

    assert relation.subject_id == "nft-1"
    assert relation.user_id == USER_ID
    assert relation.created_at is not None

@pytest.mark.asyncio
async def test_list_by_user_only_returns_own_likes(services):
    likes = services.collection_likes
    await likes.like("col-1", USER_ID)
    await likes.like("col-2", USER_ID)
    await likes.like("col-1", "someone-else")

    subjects = {relation.subject_id for relation in await likes.list_by_user(USER_ID)}
    assert subjects == {"col-1", "col-2"}

@pytest.mark.asyncio
async def test_liked_collections_resolve_latest(services, engine):
    """Test that liked collections are dereferenced to their latest version."""
    await services.collections.create(Collection(collection_id="col-1", name="one", chain="polygon"))
    await services.collections.append_version("col-1", {"name": "one v2"})
    await services.collections.create(Collection(collection_id="col-2", name="two", chain="ethereum"))

    await services.collection_likes.like("col-1", USER_ID)
    await services.collection_likes.like("col-2", USER_ID)
    await services.collection_likes.like("deleted", USER_ID)

    liked = await engine.query_liked_collections(USER_ID)
    assert sorted(c.name for c in liked) == ["one v2", "two"]

    on_polygon = await engine.query_liked_collections(USER_ID, chain="polygon")
    assert [c.collection_id for c in on_polygon] == ["col-1"]

@pytest.mark.asyncio
async def test_liked_nfts(services, engine):
    await services.nfts.create(NFT(nft_id="nft-1", token_id=1, chain="polygon"))
    await services.nft_likes.like("nft-1", USER_ID)

    liked = await engine.query_liked_nfts(USER_ID, chain="polygon")
    assert [nft.nft_id for nft in liked] == ["nft-1"]
    assert await engine.query_liked_nfts(USER_ID, chain="ethereum") == []
