"""
Pure helper functions shared by the Turbot runners: JSON canonicalization,
composite identity encoding and the diff predicates used for idempotency.
"""

import json

from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    InvalidIdentityError,
    JsonFormatError,
)

ID_SEPARATOR = "_"


def _loads(text: str, label: str = "json"):
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise JsonFormatError(
            f"failed to unmarshal {label}: \n{text}\nerror: {e}"
        ) from e


def format_json(text: str | None) -> str:
    """
    Canonicalizes a JSON document so that semantically equal documents compare
    equal as text.

    Keys are sorted and separators are compact, so documents differing only in
    key order or whitespace produce the same string. Canonicalizing an already
    canonical string returns it unchanged. Empty input yields an empty string.

    Raises:
        JsonFormatError: If the input is not valid JSON.
    """
    if not text:
        return ""
    return map_to_json_string(_loads(text))


def map_to_json_string(value) -> str:
    """Serializes a value into its canonical JSON text."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def json_string_to_map(text: str | None, label: str = "json") -> dict:
    """
    Parses JSON text that must describe an object. Empty input yields `{}`.

    Raises:
        JsonFormatError: If the text is malformed or is not a JSON object.
    """
    if not text:
        return {}
    value = _loads(text, label)
    if not isinstance(value, dict):
        raise JsonFormatError(
            f"failed to unmarshal {label}: \n{text}\nerror: expected a JSON object"
        )
    return value


def property_map_from_json(text: str | None) -> dict:
    """
    Builds a map of property name to property path from the top-level keys of
    a JSON object. A read uses it to fetch only the configured properties.
    """
    return {key: key for key in json_string_to_map(text)}


def remove_properties(properties: list, excluded: list) -> list:
    return [prop for prop in properties if prop not in excluded]


def build_id(first: str, second: str) -> str:
    """Encodes a two-part relation key as a single identity string."""
    return f"{first}{ID_SEPARATOR}{second}"


def parse_id(value: str) -> tuple[str, str]:
    """
    Decodes a composite identity by splitting on the first underscore.

    The left part is assumed never to contain an underscore; an identity whose
    left part does cannot be decoded correctly.

    Raises:
        InvalidIdentityError: If the value has no separator or an empty part.
    """
    first, sep, second = (value or "").partition(ID_SEPARATOR)
    if not sep or not first or not second:
        raise InvalidIdentityError(
            f"Invalid identity '{value}': expected '<smart_folder>{ID_SEPARATOR}<resource>'."
        )
    return first, second


def suppress_if_aka_matches(akas_key: str):
    """
    Returns a diff predicate that treats a configured id-or-aka as unchanged
    when it equals the stored identifier or appears in the alias list cached
    under `akas_key`.
    """

    def suppress(key, old, new, data) -> bool:
        if new == old:
            return True
        akas = data.get(akas_key) or []
        return new in akas

    return suppress


def suppress_if_data_matches(key, old, new, data) -> bool:
    """Treats two JSON documents as unchanged when their canonical forms match."""
    try:
        return format_json(old) == format_json(new)
    except JsonFormatError:
        # The write path reports the parse error with full context.
        return False


def suppress_if_akas_present(key, old, new, data) -> bool:
    """
    The workspace adds generated aliases of its own, so configured akas are
    satisfied when every one of them is already on the resource.
    """
    return set(new or []).issubset(set(old or []))
