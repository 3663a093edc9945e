"""
Firestore query helpers shared by the Firestore-backed stores.

NOTE: For firebase_admin SDK, we use positional arguments which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from typing import Any, Dict

# Firestore caps "in" filters at 30 values
MAX_IN_FILTER_VALUES = 30


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore queries.

    Usage:
        query = where_filter(collection, "type", "==", "Fire")
        query = where_filter(query, "status", "in", ["available", "assigned"])
    """
    if op_string == "in" and len(value) > MAX_IN_FILTER_VALUES:
        raise ValueError(f"Firestore 'in' filter supports at most {MAX_IN_FILTER_VALUES} values")
    return query.where(field_path, op_string, value)


def snapshot_to_dict(snapshot) -> Dict[str, Any]:
    """Document snapshot -> dict with the document id under "id"."""
    data = snapshot.to_dict() or {}
    data["id"] = snapshot.id
    return data
