"""
Firestore helpers: keyword filter queries and batched deletes.
"""

from typing import Iterable, List

from google.cloud.firestore_v1.base_query import FieldFilter

# Firestore rejects write batches above 500 operations
MAX_BATCH_SIZE = 500


def where_filter(query, field_path: str, op_string: str, value):
    """
    Apply a field filter using the keyword API.

    Usage:
        query = where_filter(collection, "date", "<", "2024-10-25")
    """
    return query.where(filter=FieldFilter(field_path, op_string, value))


def delete_in_batches(db, doc_refs: Iterable, batch_size: int = MAX_BATCH_SIZE) -> int:
    """Delete documents, committing one write batch per `batch_size` refs."""
    refs: List = list(doc_refs)
    for start in range(0, len(refs), batch_size):
        batch = db.batch()
        for ref in refs[start:start + batch_size]:
            batch.delete(ref)
        batch.commit()
    return len(refs)
