"""
Firestore query helpers.

Uses the keyword filter API (FieldFilter) so range queries do not emit the
positional-argument deprecation warning.
"""

from google.cloud.firestore_v1.base_query import FieldFilter


def where_filter(query, field_path: str, op_string: str, value):
    """
    Usage:
        query = where_filter(collection, "reporter_id", "==", user_id)
        query = where_filter(query, "latitude", ">=", box.min_lat)
    """
    return query.where(filter=FieldFilter(field_path, op_string, value))


def where_between(query, field_path: str, low, high):
    """Inclusive range on a single field."""
    return where_filter(where_filter(query, field_path, ">=", low), field_path, "<=", high)
