"""Helpers for the JSON text fields used to carry lists through commands and events."""

import json


def load_list(value) -> list:
    """Decode a JSON array stored in a Text field (already-decoded lists pass through)."""
    if not value:
        return []
    if isinstance(value, str):
        return json.loads(value)
    return list(value)


def dump_list(values) -> str:
    return json.dumps(list(values or []))


def canonical_customization(selections) -> list[dict]:
    """Normalise customization selections so equal choices compare equal in any order."""
    normalised = {
        (str(selection["customization_type"]), str(selection["option_id"])) for selection in load_list(selections)
    }
    return [{"customization_type": ctype, "option_id": option_id} for ctype, option_id in sorted(normalised)]


def canonical_add_on_ids(add_on_ids) -> list[str]:
    return sorted({str(add_on_id) for add_on_id in load_list(add_on_ids)})
