"""Request body sanitization before forwarding upstream."""

from __future__ import annotations

import json
import math
from typing import Any

from core.exceptions import BodyParseError, EmptyCredentialsError, FieldTypeError
from core.request_types import SanitizedPayload

SIGNATURE_FIELD = "sec"
SIGNED_VALUE_FIELD = "secval"
RESERVED_FIELDS = (SIGNATURE_FIELD, SIGNED_VALUE_FIELD)


def _reject_constant(name: str) -> Any:
    # json accepts NaN/Infinity by default; they are not JSON
    raise ValueError(f"invalid JSON constant {name}")


def _parse_float(text: str) -> float:
    # 1e400 and friends overflow to inf, which cannot be re-encoded as JSON
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def parse_json_object(raw_body: bytes) -> dict[str, Any]:
    """Decode raw_body as a JSON object."""
    try:
        data = json.loads(raw_body, parse_constant=_reject_constant, parse_float=_parse_float)
    except ValueError as e:
        raise BodyParseError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise BodyParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def encode_json(data: dict[str, Any]) -> bytes:
    """Serialize data as compact JSON with sorted keys."""
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
    ).encode("utf-8")


class PayloadSanitizer:
    """Extract and strip the signature fields from request bodies."""

    def sanitize(self, raw_body: bytes) -> SanitizedPayload:
        """Return the body without ``sec``/``secval`` plus the extracted values.

        Both fields are type checked before either is checked for emptiness,
        so a missing field wins over an empty one.
        """
        data = parse_json_object(raw_body)

        sec = data.get(SIGNATURE_FIELD)
        secval = data.get(SIGNED_VALUE_FIELD)
        if not isinstance(sec, str) or not isinstance(secval, str):
            raise FieldTypeError(
                f"sec is {type(sec).__name__}, secval is {type(secval).__name__}"
            )
        if not sec or not secval:
            raise EmptyCredentialsError("empty sec or secval")

        fields = {k: v for k, v in data.items() if k not in RESERVED_FIELDS}
        return SanitizedPayload(content=encode_json(fields), sec=sec, secval=secval)
