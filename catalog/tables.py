"""Key layouts of the catalog tables (see database/schema/)."""
from database import TableSpec

ADDRESS_INDEX = 'address-index'
CATEGORY_INDEX = 'category-index'
CREATOR_ADDRESS_INDEX = 'creatorAddress-index'
COLLECTION_ID_INDEX = 'collectionId-index'
COLLECTION_ADDRESS_INDEX = 'collectionAddress-index'
DOT_ID_INDEX = 'dotId-index'
NFT_ID_INDEX = 'nftId-index'
USER_ID_INDEX = 'userId-index'
USER_TAG_INDEX = 'userTag-index'

COLLECTIONS_TABLE = TableSpec(
    name='collections',
    partition_key='collectionId',
    sort_key='version',
    indexes={
        ADDRESS_INDEX: 'address',
        CATEGORY_INDEX: 'category',
        CREATOR_ADDRESS_INDEX: 'creatorAddress'
    }
)

NFTS_TABLE = TableSpec(
    name='nfts',
    partition_key='nftId',
    sort_key='version',
    indexes={
        COLLECTION_ID_INDEX: 'collectionId',
        COLLECTION_ADDRESS_INDEX: 'collectionAddress',
        DOT_ID_INDEX: 'dotId',
        CREATOR_ADDRESS_INDEX: 'creatorAddress',
        CATEGORY_INDEX: 'category'
    }
)

ASSETS_TABLE = TableSpec(
    name='assets',
    partition_key='assetId',
    indexes={NFT_ID_INDEX: 'nftId'}
)

WALLETS_TABLE = TableSpec(
    name='wallets',
    partition_key='address',
    sort_key='chain',
    indexes={USER_ID_INDEX: 'userId'}
)

LIKED_COLLECTIONS_TABLE = TableSpec(
    name='liked_collections',
    partition_key='collectionId',
    sort_key='userId',
    indexes={USER_ID_INDEX: 'userId'}
)

LIKED_NFTS_TABLE = TableSpec(
    name='liked_nfts',
    partition_key='nftId',
    sort_key='userId',
    indexes={USER_ID_INDEX: 'userId'}
)

USERS_TABLE = TableSpec(
    name='users',
    partition_key='userId',
    indexes={USER_TAG_INDEX: 'userTag'}
)

SEARCH_DOCUMENTS_TABLE = TableSpec(
    name='search_documents',
    partition_key='id'
)

CATALOG_TABLES = [
    COLLECTIONS_TABLE,
    NFTS_TABLE,
    ASSETS_TABLE,
    WALLETS_TABLE,
    LIKED_COLLECTIONS_TABLE,
    LIKED_NFTS_TABLE,
    USERS_TABLE,
    SEARCH_DOCUMENTS_TABLE
]
