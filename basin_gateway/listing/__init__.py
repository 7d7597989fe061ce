from __future__ import annotations
from .contracts import DEFAULT_CID, ListedObject, ListRequest, ListResponse, ObjectValue
from .service import cid_text, decode_key, normalize_list_query, project_list_result

__all__ = [
    "DEFAULT_CID",
    "ListedObject",
    "ListRequest",
    "ListResponse",
    "ObjectValue",
    "cid_text",
    "decode_key",
    "normalize_list_query",
    "project_list_result",
]
