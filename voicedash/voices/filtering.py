"""Pure language/gender indexing over a fetched voice catalog."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..errors import ValidationError
from ..models.datatypes import GENDERS, VoiceCatalogEntry
from ..parsing import normalize_optional_string


GENDER_WILDCARD = "ALL"
GENDER_FILTERS = (GENDER_WILDCARD, *GENDERS)


def normalize_gender_filter(value: str | None) -> str:
    """Return an upper-case gender filter, defaulting blank input to the wildcard."""

    normalized = normalize_optional_string(value)
    if normalized is None:
        return GENDER_WILDCARD
    token = normalized.upper()
    if token not in GENDER_FILTERS:
        raise ValidationError(
            f"Unsupported gender filter `{value}`.",
            field="gender",
            hint=f"Use one of: {', '.join(GENDER_FILTERS)}.",
        )
    return token


def available_languages(catalog: Iterable[VoiceCatalogEntry]) -> list[str]:
    """Return the sorted distinct language tags offered by a catalog."""

    return sorted({code for voice in catalog for code in voice.language_codes})


def filter_voices(
    catalog: Sequence[VoiceCatalogEntry],
    language: str,
    gender: str = GENDER_WILDCARD,
) -> list[VoiceCatalogEntry]:
    """Return catalog entries supporting `language` and matching `gender`.

    Input order is preserved. The wildcard gender keeps every gender.
    """

    gender_filter = normalize_gender_filter(gender)
    return [
        voice
        for voice in catalog
        if language in voice.language_codes
        and (gender_filter == GENDER_WILDCARD or voice.gender == gender_filter)
    ]
