"""Parameter canonicalization.

Turns an unordered field set into the deterministic ``|``-joined string
that both the merchant and the gateway hash.
"""

from __future__ import annotations

from typing import Any, Mapping, Union

from bas_payment.exceptions import InvalidInputError

FIELD_SEPARATOR = "|"
NULL_LITERAL = "null"
FLOAT_PRECISION = 14

Scalar = Union[str, int, float, bool, None]
Params = Union[str, Mapping[str, Scalar]]


def _float_to_text(value: float) -> str:
    """Format a float with 14 significant digits like the reference SDK.

    Exponent form keeps a one-digit fraction and drops exponent padding:
    1e20 -> "1.0E+20", 1.5e-7 -> "1.5E-7". Non-finite values become
    "INF", "-INF" and "NAN".
    """
    text = f"{value:.{FLOAT_PRECISION}G}"
    if "E" not in text:
        return text
    mantissa, exponent = text.split("E")
    if "." not in mantissa:
        mantissa += ".0"
    return f"{mantissa}E{exponent[0]}{exponent[1:].lstrip('0') or '0'}"


def to_text(value: Any) -> str:
    """Render a scalar the way the gateway's reference SDK casts it to string.

    Booleans become "1"/"", floats keep 14 significant digits
    (10.0 -> "10", 0.1 + 0.2 -> "0.3", 1e20 -> "1.0E+20").
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float):
        return _float_to_text(value)
    return str(value)


def _normalize(value: Scalar) -> str:
    text = to_text(value)
    if text.lower() == NULL_LITERAL:
        return ""
    return text


def canonicalize(params: Params) -> str:
    """Build the canonical string for a raw string or a field mapping.

    Strings are assumed to be canonical already and are returned unchanged.
    Mapping values are ordered by key (code point order), ``None`` and any
    case variant of "null" become empty, and the results are joined with
    ``|``.

    Raises:
        InvalidInputError: If params is neither a string nor a mapping.
    """
    if isinstance(params, str):
        return params
    if not isinstance(params, Mapping):
        raise InvalidInputError(
            f"String or mapping expected, {type(params).__name__} given",
            context={"type": type(params).__name__},
        )
    return FIELD_SEPARATOR.join(
        _normalize(params[key]) for key in sorted(params, key=str)
    )
