from __future__ import annotations

import logging
from typing import Optional

from multiformats import CID
from pydantic import ValidationError

from ..objectstore.contracts import ListQuery, ListResult
from .contracts import DEFAULT_CID, ListedObject, ListRequest, ListResponse, ObjectValue

log = logging.getLogger("listing")


def normalize_list_query(raw_body: Optional[bytes]) -> ListQuery:
    """Map an optional JSON body to query options.

    A missing or unparseable body is not an error here: it just means "use the
    defaults". A parseable body overrides only the fields it carries.
    """
    if not raw_body or not raw_body.strip():
        return ListQuery()
    try:
        req = ListRequest.model_validate_json(raw_body)
    except ValidationError as e:
        log.debug("list.body_ignored errors=%d", e.error_count())
        return ListQuery()
    log.info("list.body %s", req)
    overrides = req.model_dump(exclude_none=True)
    return ListQuery(**overrides)


def decode_key(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def cid_text(raw: bytes) -> str:
    try:
        return str(CID.decode(bytes(raw)))
    except Exception as e:  # multiformats raises several unrelated error types
        log.warning("list.cid_undecodable len=%d error=%s", len(raw), e)
        return DEFAULT_CID


def project_list_result(result: ListResult) -> ListResponse:
    objects = [
        ListedObject(
            key=decode_key(key),
            value=ObjectValue(
                cid=cid_text(state.cid),
                resolved=state.resolved,
                size=state.size,
                metadata=dict(state.metadata),
            ),
        )
        for key, state in result.objects
    ]
    prefixes = [decode_key(p) for p in result.common_prefixes]
    return ListResponse(objects=objects, common_prefixes=prefixes)
