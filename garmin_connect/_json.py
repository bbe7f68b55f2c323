"""JSON decoding helpers for Garmin Connect responses.

Response bodies and page-embedded data are validated with pydantic's
``TypeAdapter``, so callers can ask for a ``BaseModel`` subclass, a
``TypedDict`` or plain builtin containers alike.

This is an internal module. Import from ``garmin_connect`` instead.
"""

import re
from functools import lru_cache
from typing import Any, Optional, TypeVar, get_origin

from pydantic import TypeAdapter

from garmin_connect.exceptions import UnexpectedResponseError


T = TypeVar("T")

# Builtins whose no-argument constructor is their natural "empty" value
_EMPTY_CONSTRUCTIBLE = (list, dict, set, frozenset, tuple, str, bytes, int, float, bool)


def empty_value(type_: Any) -> Any:
    """Return the value an empty response body stands for.

    Builtin types and their parametrised generics (``list[int]``,
    ``dict[str, Any]``) produce their empty instance; models, unions and
    anything else produce ``None``.

    Args:
        type_: The type the body would have been decoded into.

    Returns:
        The empty value for ``type_``.
    """
    origin = get_origin(type_) or type_
    if origin in _EMPTY_CONSTRUCTIBLE:
        return origin()
    return None


@lru_cache(maxsize=None)
def _adapter(type_: Any) -> TypeAdapter:
    """Return the shared ``TypeAdapter`` for ``type_``, building it once."""
    return TypeAdapter(type_)


def decode_body(content: bytes, type_: type[T]) -> T:
    """Decode a raw response body into ``type_``.

    An empty body yields ``empty_value(type_)``. Validation errors from
    pydantic propagate unchanged.
    """
    if not content:
        return empty_value(type_)
    return _adapter(type_).validate_json(content)


def extract_embedded_json(html: str, key: str, type_: type[T] = dict) -> T:  # type: ignore[assignment]
    """Pull the ``window.<key> = <json>;`` assignment out of an HTML page.

    Garmin's web pages inline their bootstrap data as script assignments with
    escaped quotes. The assignment is located with a regular expression,
    the quotes are unescaped and the payload is validated into ``type_``.

    Args:
        html: The page source.
        key: Name of the ``window`` property to extract.
        type_: Type to validate the payload into (default: ``dict``).

    Returns:
        The decoded payload.

    Raises:
        UnexpectedResponseError: If the assignment is missing or decodes
            to ``None``.
        pydantic.ValidationError: If the payload is not valid for ``type_``.
    """
    match = re.search(rf"window\.{re.escape(key)} = (.*);", html)
    if match is None:
        raise UnexpectedResponseError(key)

    payload = match.group(1).replace('\\"', '"')
    # Optional so a JSON null reaches the None check below
    model = _adapter(Optional[type_]).validate_json(payload)
    if model is None:
        raise UnexpectedResponseError(key)
    return model
