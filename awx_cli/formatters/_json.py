"""Lossless JSON encoding.

API payloads are decoded with ``parse_float=Decimal`` so amounts keep every
digit; this encoder writes those Decimals back out as JSON numbers.
"""

import dataclasses
import json
from decimal import Decimal


def _key(k):
    return json.dumps(str(k), ensure_ascii=False)


def _encode(obj, indent, level, compact):
    if obj is None:
        return "null"
    if obj is True:
        return "true"
    if obj is False:
        return "false"
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise ValueError(f"cannot encode {obj} as JSON")
        return str(obj)
    if isinstance(obj, (int, float)):
        return json.dumps(obj)
    if isinstance(obj, str):
        return json.dumps(obj, ensure_ascii=False)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        obj = dataclasses.asdict(obj)
    item_sep, key_sep = (",", ":") if compact else (", ", ": ")
    if isinstance(obj, dict):
        if not obj:
            return "{}"
        parts = [f"{_key(k)}{key_sep}{_encode(v, indent, level + 1, compact)}" for k, v in obj.items()]
        return _wrap("{", "}", parts, indent, level, item_sep)
    if isinstance(obj, (list, tuple)):
        if not obj:
            return "[]"
        parts = [_encode(v, indent, level + 1, compact) for v in obj]
        return _wrap("[", "]", parts, indent, level, item_sep)
    return json.dumps(str(obj), ensure_ascii=False)


def _wrap(open_, close, parts, indent, level, item_sep):
    if indent is None:
        return open_ + item_sep.join(parts) + close
    pad = " " * (indent * (level + 1))
    end = " " * (indent * level)
    return open_ + "\n" + ",\n".join(pad + p for p in parts) + "\n" + end + close


def dumps(obj, indent=None, compact=False):
    return _encode(obj, indent, 0, compact)
