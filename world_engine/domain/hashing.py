from __future__ import annotations

from typing import Any
import hashlib

import orjson


def sha256_bytes(payload: bytes) -> str:
    return hashlib.sha256(payload).hexdigest()


def canonical_json(document: Any) -> bytes:
    return orjson.dumps(document, option=orjson.OPT_SORT_KEYS)


def document_hash(document: Any) -> str:
    return sha256_bytes(canonical_json(document))
