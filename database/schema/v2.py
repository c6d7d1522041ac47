"""Schema v2 - user profiles.

Adds the users table, looked up by user tag. A fresh database is created
from the latest version alone, so this version lists every table.
"""
from database.schema.v1 import schema as v1

schema = {
    'version': 2,
    'tables': v1['tables'] + [
        {'name': 'users', 'indexes': ['userTag']}
    ]
}
