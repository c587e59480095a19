from typing import Any, List, Mapping, Tuple
from urllib.parse import urlencode


def starts_with(haystack: str, needle: str) -> bool:
    """Return True if haystack begins with needle. An empty needle always matches."""
    return needle == "" or haystack.startswith(needle)


def build_query(params: Mapping[str, Any]) -> str:
    """Encode a mapping as an ``application/x-www-form-urlencoded`` string.

    Nested mappings and sequences use bracket notation (``a[b]=1``, ``a[0]=1``),
    booleans become ``1``/``0`` and ``None`` values are left out. Order follows
    the mapping's insertion order.
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        _flatten(str(key), value, pairs)
    return urlencode(pairs)


def _flatten(prefix: str, value: Any, pairs: List[Tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, bool):
        pairs.append((prefix, "1" if value else "0"))
    elif isinstance(value, Mapping):
        for key, item in value.items():
            _flatten(f"{prefix}[{key}]", item, pairs)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten(f"{prefix}[{index}]", item, pairs)
    else:
        pairs.append((prefix, str(value)))
