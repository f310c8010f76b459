"""
Contact ingestion: phone normalization, CSV reading and loading.
"""

from zapsender.contacts.models import ContactRecord, LoadResult

__all__ = ["ContactRecord", "LoadResult"]
