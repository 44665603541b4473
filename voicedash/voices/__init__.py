"""Voice catalog retrieval and filtering.

This package contains the session-aware catalog fetcher and the pure
language/gender index used by the TTS form.
"""

from .catalog import CatalogSnapshot, VoiceCatalogFetcher, create_catalog_fetcher
from .filtering import GENDER_WILDCARD, available_languages, filter_voices

__all__ = [
    "CatalogSnapshot",
    "GENDER_WILDCARD",
    "VoiceCatalogFetcher",
    "available_languages",
    "create_catalog_fetcher",
    "filter_voices",
]
