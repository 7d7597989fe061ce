import pytest

from basin_gateway.ingestion import (
    FileValue,
    IngestionError,
    PayloadTooLargeError,
    StreamError,
    TextValue,
    ingest_upload,
    parse_boundary,
)

ETH = "0x52963ef50e27e06d72d59fcb4f3c2a687be3cfef"
BOUNDARY = "----basinboundary7MA4YWxkTrZu0gW"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


def build_multipart(parts, boundary=BOUNDARY, close=True):
    out = bytearray()
    for name, value, filename in parts:
        out += f"--{boundary}\r\n".encode()
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        out += f"Content-Disposition: {disposition}\r\n".encode()
        if filename is not None:
            out += b"Content-Type: application/octet-stream\r\n"
        out += b"\r\n" + value + b"\r\n"
    if close:
        out += f"--{boundary}--\r\n".encode()
    return bytes(out)


async def chunked(body, size=7):
    for i in range(0, len(body), size):
        yield body[i:i + size]


def _basic_parts(file_value=b"hello", filename="hello.txt"):
    return [
        ("address", ETH.encode(), None),
        ("key", b"greeting", None),
        ("file", file_value, filename),
    ]


def test_parse_boundary():
    assert parse_boundary(CONTENT_TYPE) == BOUNDARY.encode()
    with pytest.raises(IngestionError, match="Invalid Content-Type"):
        parse_boundary("application/json")
    with pytest.raises(IngestionError, match="missing multipart boundary"):
        parse_boundary("multipart/form-data")


@pytest.mark.anyio
async def test_streamed_upload_in_small_chunks():
    body = build_multipart(_basic_parts())
    intent = await ingest_upload(chunked(body, size=3), CONTENT_TYPE)
    assert intent.key == "greeting"
    assert intent.value == FileValue(filename="hello.txt", data=b"hello")


@pytest.mark.anyio
async def test_file_before_fields_and_unknown_parts():
    parts = [("file", b"abc", None), ("note", b"ignored", None)] + _basic_parts()[:2]
    intent = await ingest_upload(chunked(build_multipart(parts)), CONTENT_TYPE)
    assert intent.value == TextValue(data=b"abc")


@pytest.mark.anyio
async def test_payload_containing_crlf_and_boundary_like_bytes():
    payload = b"line1\r\nline2\r\n--not-the-boundary\r\n" + bytes(range(256))
    intent = await ingest_upload(chunked(build_multipart(_basic_parts(payload))), CONTENT_TYPE)
    assert intent.payload == payload


@pytest.mark.anyio
async def test_size_boundary():
    limit = 64
    ok = build_multipart(_basic_parts(b"x" * limit))
    intent = await ingest_upload(chunked(ok, size=5), CONTENT_TYPE, max_file_size=limit)
    assert intent.size == limit

    too_big = build_multipart(_basic_parts(b"x" * (limit + 1)))
    with pytest.raises(PayloadTooLargeError, match="payload too large"):
        await ingest_upload(chunked(too_big, size=5), CONTENT_TYPE, max_file_size=limit)


@pytest.mark.anyio
async def test_missing_field():
    body = build_multipart([("key", b"k", None)])
    with pytest.raises(IngestionError, match="missing field: address"):
        await ingest_upload(chunked(body), CONTENT_TYPE)


@pytest.mark.anyio
async def test_truncated_body_is_malformed():
    body = build_multipart(_basic_parts(), close=False)
    with pytest.raises(IngestionError, match="malformed multipart body"):
        await ingest_upload(chunked(body), CONTENT_TYPE)

    cut = build_multipart(_basic_parts())[:-40]
    with pytest.raises(IngestionError, match="malformed multipart body"):
        await ingest_upload(chunked(cut), CONTENT_TYPE)


@pytest.mark.anyio
async def test_part_without_disposition():
    body = f"--{BOUNDARY}\r\nContent-Type: text/plain\r\n\r\nx\r\n--{BOUNDARY}--\r\n".encode()
    with pytest.raises(IngestionError, match="Content-Disposition"):
        await ingest_upload(chunked(body), CONTENT_TYPE)


@pytest.mark.anyio
async def test_broken_stream_propagates_as_bad_request():
    body = build_multipart(_basic_parts())

    async def disconnecting():
        yield body[:20]
        raise StreamError("client disconnected")

    with pytest.raises(StreamError) as ei:
        await ingest_upload(disconnecting(), CONTENT_TYPE)
    assert ei.value.status_code == 400
