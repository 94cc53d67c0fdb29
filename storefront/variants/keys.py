"""
Canonical identity for a variant selection.

A selection maps option-group label -> chosen value. Its key is the
label-sorted ``label:value`` pairs joined with ``|``, or ``__base__`` when no
group has a value. Keys are what the inventory map, the price-override map
and cart lines are indexed by, so the encoding must stay stable.

Separators inside labels or values are backslash-escaped. Plain labels and
values (the overwhelmingly common case) therefore encode exactly as
``Color:Red|Model:iPhone 13``.
"""
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

BASE_KEY = "__base__"

PAIR_SEPARATOR = "|"
VALUE_SEPARATOR = ":"
_ESCAPE = "\\"


def _escape(text: str) -> str:
    return (
        text.replace(_ESCAPE, _ESCAPE * 2)
        .replace(PAIR_SEPARATOR, _ESCAPE + PAIR_SEPARATOR)
        .replace(VALUE_SEPARATOR, _ESCAPE + VALUE_SEPARATOR)
    )


def _label_order(label: str) -> Tuple[str, str]:
    # Case-insensitive first so "color" and "Color" sort together, raw text
    # breaks ties so the order is total.
    return (label.casefold(), label)


def is_blank(value: Any) -> bool:
    """True for values that count as 'unselected'."""
    return value is None or str(value).strip() == ""


def normalize_selection(selection: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Drop unselected entries and stringify values, keeping label order stable."""
    if not isinstance(selection, Mapping):
        return {}
    entries = [
        (str(label), str(value))
        for label, value in selection.items()
        if not is_blank(label) and not is_blank(value)
    ]
    entries.sort(key=lambda entry: _label_order(entry[0]))
    return dict(entries)


def variant_key(selection: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build the canonical key for a selection.

    Args:
        selection: label -> chosen value; blank/None values are ignored

    Returns:
        ``BASE_KEY`` for an empty selection, else the joined pairs
    """
    normalized = normalize_selection(selection)
    if not normalized:
        return BASE_KEY
    return PAIR_SEPARATOR.join(
        f"{_escape(label)}{VALUE_SEPARATOR}{_escape(value)}"
        for label, value in normalized.items()
    )


def normalize_key(key: Any) -> str:
    """Trim a stored key; blank keys mean the base key."""
    text = "" if key is None else str(key).strip()
    return text or BASE_KEY


def _split_unescaped(text: str, separator: str, maxsplit: int = -1):
    parts = []
    current = []
    escaped = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
        elif char == _ESCAPE:
            escaped = True
        elif char == separator and maxsplit != 0:
            parts.append("".join(current))
            current = []
            maxsplit -= 1
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def parse_variant_key(key: str) -> Dict[str, str]:
    """
    Decode a key back into its selection.

    The base key (and anything blank) decodes to ``{}``. Malformed pairs
    without a label separator are skipped.
    """
    key = normalize_key(key)
    if key == BASE_KEY:
        return {}
    selection: Dict[str, str] = {}
    raw_pairs = []
    # Split pairs on unescaped '|' while keeping escapes for the second pass.
    current = []
    escaped = False
    for char in key:
        if escaped:
            current.append(char)
            escaped = False
        elif char == _ESCAPE:
            current.append(char)
            escaped = True
        elif char == PAIR_SEPARATOR:
            raw_pairs.append("".join(current))
            current = []
        else:
            current.append(char)
    raw_pairs.append("".join(current))

    for raw in raw_pairs:
        parts = _split_unescaped(raw, VALUE_SEPARATOR, maxsplit=1)
        if len(parts) != 2 or not parts[0]:
            continue
        selection[parts[0]] = parts[1]
    return selection


def _match_plain_pairs(text: str, groups: Mapping[str, Sequence[str]]) -> Optional[Dict[str, str]]:
    # Keys written before escaping existed hold raw labels and values, so a
    # separator inside a value is ambiguous. Resolve it against the known
    # options, trying every label at each position.
    def walk(position: int, used: Dict[str, str]) -> Optional[Dict[str, str]]:
        if position == len(text):
            return dict(used)
        for label, values in groups.items():
            if label in used:
                continue
            for value in values:
                pair = f"{label}{VALUE_SEPARATOR}{value}"
                end = position + len(pair)
                if not text.startswith(pair, position):
                    continue
                if end == len(text):
                    found = walk(end, {**used, label: value})
                elif text[end] == PAIR_SEPARATOR:
                    found = walk(end + 1, {**used, label: value})
                else:
                    continue
                if found is not None:
                    return found
        return None

    return walk(0, {})


def canonical_key(key: Any, groups: Optional[Mapping[str, Sequence[str]]]) -> str:
    """
    Re-encode a stored key against a product's option groups.

    A key that already names a known combination comes back unchanged. An
    unescaped key whose labels or values contain ``:`` or ``|`` is matched
    against the groups and re-encoded with ``variant_key``. Anything that
    matches nothing is returned as-is so callers can decide to drop it.
    """
    key = normalize_key(key)
    if key == BASE_KEY or not groups:
        return key
    selection = parse_variant_key(key)
    if (
        selection
        and all(value in groups.get(label, ()) for label, value in selection.items())
        and variant_key(selection) == key
    ):
        return key
    matched = _match_plain_pairs(key, groups)
    return variant_key(matched) if matched else key


def format_selection_label(selection: Optional[Mapping[str, Any]]) -> str:
    """Human-readable label for a combination, e.g. ``Color: Red • Model: iPhone 13``."""
    normalized = normalize_selection(selection)
    if not normalized:
        return "Base product"
    return " • ".join(f"{label}: {value}" for label, value in normalized.items())
