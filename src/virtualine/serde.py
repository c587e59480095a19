"""Serialization and deserialization utilities for HTTP request/response bodies."""

from collections.abc import MutableMapping, MutableSequence
from typing import Any, Dict, List, Optional, Type, Union

ENVELOPED_KEY = "data"


def _is_list_type(cls: Type) -> bool:
    """Check if cls is a list-like type (list, List, List[T], or MutableSequence subclass)."""
    try:
        return issubclass(cls.__origin__, MutableSequence)
    except (AttributeError, TypeError):
        try:
            return issubclass(cls, MutableSequence)
        except TypeError:
            return False


def _is_dict_type(cls: Type) -> bool:
    """Check if cls is a dict-like type (dict, Dict, Dict[K,V], or MutableMapping subclass)."""
    try:
        return issubclass(cls.__origin__, MutableMapping)
    except (AttributeError, TypeError):
        try:
            return issubclass(cls, MutableMapping)
        except TypeError:
            return False


def serialize_body(body: Any) -> Any:
    """Convert a JSON request body into plain JSON-compatible values.

    Supports:
    - None, dict, list, tuple, str and numeric primitives
    - Objects with model_dump() (pydantic v2), to_json() or to_dict() methods (duck typing)
    - Nested objects inside containers are recursively serialized

    Raises:
        ValueError: If bytes are found anywhere in the body
        TypeError: If a value type is not supported
    """
    if body is None:
        return None
    if isinstance(body, (str, int, float, bool)):
        return body
    if isinstance(body, bytes):
        raise ValueError("bytes data is not supported")
    if isinstance(body, dict):
        return {k: serialize_body(v) for k, v in body.items()}
    if isinstance(body, (list, tuple)):
        return [serialize_body(item) for item in body]
    if hasattr(body, "model_dump") and callable(body.model_dump):  # Pydantic v2
        return serialize_body(body.model_dump())
    if hasattr(body, "to_json") and callable(body.to_json):
        return serialize_body(body.to_json())
    if hasattr(body, "to_dict") and callable(body.to_dict):
        return serialize_body(body.to_dict())
    raise TypeError(
        f"Cannot serialize value of type {type(body).__name__}. "
        f"Expected dict, list, primitive, or an object with model_dump(), to_json() or to_dict()."
    )


def deserialize(
    response: Union[Any, Dict[str, Any], List],
    cls: Optional[Type] = None,
    enveloped_key: Optional[str] = ENVELOPED_KEY,
) -> Any:
    """Deserialize a response from the API.

    Works with ``virtualine.http.Response`` objects (via ``get_json()``) and
    with already decoded data by duck typing.

    Args:
        response: Response object (with .get_json() method) or dict/list
        cls: Optional type hint for the expected return type. For basic types
            (dict, list) the data is returned as-is. Model classes need
            model_validate(), from_dict() or from_json().
        enveloped_key: Listing endpoints envelope their payload in a key.
            Default is 'data'. Set to None to skip envelope extraction.

    Returns:
        Deserialized data

    Raises:
        ValueError: If enveloped_key is specified but not found in response
    """
    try:
        response_json = response.get_json()
    except AttributeError:
        response_json = response

    if enveloped_key is not None:
        if not isinstance(response_json, dict) or enveloped_key not in response_json:
            found = list(response_json.keys()) if isinstance(response_json, dict) else type(response_json).__name__
            raise ValueError(f"Expected enveloped key '{enveloped_key}' not found in response json. Found: {found}")
        data = response_json[enveloped_key]
    else:
        data = response_json

    if cls is None:
        return data

    if _is_dict_type(cls):
        return data

    if _is_list_type(cls):
        args = getattr(cls, "__args__", ())
        if not args:
            return data
        inner_cls = args[0]
        if inner_cls in (dict, list, str, int, float, bool) or _is_dict_type(inner_cls) or _is_list_type(inner_cls):
            return data
        return [_deserialize_object(item, inner_cls) for item in data]

    return _deserialize_object(data, cls)


def _deserialize_object(data: Any, cls: Type) -> Any:
    """Deserialize a single object using duck-typed methods.

    Supports:
    - Pydantic v2 models (model_validate)
    - Classes with from_dict() class method
    - Classes with from_json() class method
    """
    if hasattr(cls, "model_validate") and callable(cls.model_validate):  # Pydantic v2
        return cls.model_validate(data)

    if hasattr(cls, "from_dict") and callable(cls.from_dict):
        return cls.from_dict(data)

    if hasattr(cls, "from_json") and callable(cls.from_json):
        return cls.from_json(data)

    raise TypeError(
        f"Cannot deserialize to {cls.__name__}. "
        f"Class must have model_validate(), from_dict(), or from_json() class method."
    )
