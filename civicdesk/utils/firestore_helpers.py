"""
Firestore query helpers.

NOTE: For firebase_admin SDK, we use positional arguments which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a single field filter to a Firestore query or collection.

    Usage:
        query = where_filter(collection, "key", ">=", "ticket_")
        query = where_filter(query, "key", "<", "ticket_\\uf8ff")
    """
    return query.where(field_path, op_string, value)
