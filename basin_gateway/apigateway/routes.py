from __future__ import annotations
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict

import anyio
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from ..errors import BadRequestError, ClientGoneError
from ..ingestion import MULTIPART_FORM_DATA, StreamError, ingest_upload
from ..listing import ListResponse, normalize_list_query
from ..objectstore import TxReceipt
from .contracts import ErrorBody, GetRequest
from .service import GatewayService

log = logging.getLogger("apigateway.routes")

APPLICATION_JSON = "application/json"
ERROR_RESPONSES = {400: {"model": ErrorBody}, 500: {"model": ErrorBody}}


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def _require_json(request: Request) -> None:
    if _media_type(request) != APPLICATION_JSON:
        raise BadRequestError("Invalid Content-Type")


async def _body_chunks(request: Request) -> AsyncIterator[bytes]:
    try:
        async for chunk in request.stream():
            if chunk:
                yield chunk
    except ClientDisconnect as e:
        raise StreamError("client disconnected") from e


async def _wait_for_disconnect(request: Request) -> None:
    # the body is already consumed, so only http.disconnect can arrive
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


async def unless_disconnected(request: Request, call: Callable[[], Awaitable[Any]]) -> Any:
    """
    Run ``call`` while watching the client connection.

    A disconnect cancels the call wherever it is. A request still queued in the
    sequencer leaves the queue without reading or consuming a sequence.
    """
    outcome: Dict[str, Any] = {}

    async def watch(scope: anyio.CancelScope) -> None:
        await _wait_for_disconnect(request)
        log.info("request.disconnected path=%s", request.url.path)
        scope.cancel()

    async with anyio.create_task_group() as tg:
        tg.start_soon(watch, tg.cancel_scope)
        try:
            outcome["result"] = await call()
        except Exception as e:
            outcome["error"] = e
        finally:
            tg.cancel_scope.cancel()

    if "error" in outcome:
        raise outcome["error"]
    if "result" not in outcome:
        raise ClientGoneError()
    return outcome["result"]


def get_router(service_factory) -> APIRouter:
    r = APIRouter(tags=["objects"])
    service: GatewayService = service_factory()

    @r.post("/list", response_model=ListResponse, responses=ERROR_RESPONSES)
    async def list_objects(request: Request, svc: GatewayService = Depends(lambda: service)):
        _require_json(request)
        query = normalize_list_query(await request.body())
        log.info("list.request prefix=%r delimiter=%r offset=%d limit=%d", query.prefix, query.delimiter, query.offset, query.limit)
        return await svc.list(query)

    @r.post("/get", response_model=TxReceipt, responses=ERROR_RESPONSES)
    async def get_object(request: Request, svc: GatewayService = Depends(lambda: service)):
        _require_json(request)
        try:
            body = GetRequest.model_validate_json(await request.body())
        except ValidationError as e:
            raise BadRequestError("Invalid request body") from e
        log.info("get.request %s", body)
        return await unless_disconnected(request, lambda: svc.get(body))

    @r.post("/set", response_model=TxReceipt, responses=ERROR_RESPONSES)
    async def set_object(request: Request, svc: GatewayService = Depends(lambda: service)):
        content_type = request.headers.get("content-type", "")
        if _media_type(request) != MULTIPART_FORM_DATA:
            raise BadRequestError("Invalid Content-Type")
        intent = await ingest_upload(
            _body_chunks(request),
            content_type,
            max_file_size=svc.max_file_size,
            network=svc.network,
        )
        return await unless_disconnected(request, lambda: svc.set(intent))

    return r
