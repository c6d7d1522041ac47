"""Schema v1 - catalog tables.

Lists each key-value table with the item attributes its secondary indexes
look up. Attribute names match the index attributes in catalog/tables.py.
"""

schema = {
    'version': 1,
    'tables': [
        {'name': 'collections', 'indexes': ['address', 'category', 'creatorAddress']},
        {'name': 'nfts', 'indexes': ['collectionId', 'collectionAddress', 'dotId', 'creatorAddress', 'category']},
        {'name': 'assets', 'indexes': ['nftId']},
        {'name': 'wallets', 'indexes': ['userId']},
        {'name': 'liked_collections', 'indexes': ['userId']},
        {'name': 'liked_nfts', 'indexes': ['userId']},
        {'name': 'search_documents'}
    ]
}
