import pytest

from basin_gateway.addressing import AddressError
from basin_gateway.ingestion import (
    AssemblerState,
    FileValue,
    IngestionError,
    MissingFieldError,
    PayloadTooLargeError,
    TextValue,
    UploadAssembler,
)

ETH = "0x52963ef50e27e06d72d59fcb4f3c2a687be3cfef"


def _part(asm, name, data, filename=None):
    asm.begin_part(name, filename)
    asm.feed(data)
    asm.end_part()


def test_fields_and_file_make_an_intent():
    asm = UploadAssembler()
    _part(asm, "address", ETH.encode())
    _part(asm, "key", b"greeting")
    _part(asm, "file", b"hello", filename="hello.txt")
    intent = asm.finish()
    assert asm.state == AssemblerState.COMPLETE
    assert intent.key == "greeting"
    assert intent.address.to_eth().lower() == ETH
    assert intent.value == FileValue(filename="hello.txt", data=b"hello")
    assert intent.size == 5
    assert asm.buffered == 0


def test_part_order_is_irrelevant():
    asm = UploadAssembler()
    _part(asm, "file", b"hello")
    _part(asm, "key", b"greeting")
    _part(asm, "address", ETH.encode())
    intent = asm.finish()
    # file part without a filename is a text value
    assert intent.value == TextValue(data=b"hello")


def test_missing_file_yields_empty_payload():
    asm = UploadAssembler()
    _part(asm, "address", ETH.encode())
    _part(asm, "key", b"k")
    assert asm.finish().payload == b""


@pytest.mark.parametrize("missing", ["address", "key"])
def test_missing_required_field(missing):
    asm = UploadAssembler()
    for name, value in (("address", ETH.encode()), ("key", b"k")):
        if name != missing:
            _part(asm, name, value)
    with pytest.raises(MissingFieldError) as ei:
        asm.finish()
    assert ei.value.message == f"missing field: {missing}"
    assert asm.state == AssemblerState.FAILED


def test_unknown_parts_are_discarded():
    asm = UploadAssembler()
    _part(asm, "comment", b"x" * 10_000)
    _part(asm, "address", ETH.encode())
    _part(asm, "key", b"k")
    intent = asm.finish()
    assert intent.payload == b""


def test_later_duplicate_field_wins():
    asm = UploadAssembler()
    _part(asm, "address", ETH.encode())
    _part(asm, "key", b"first")
    _part(asm, "key", b"second")
    assert asm.finish().key == "second"


def test_file_exactly_at_limit_is_accepted():
    asm = UploadAssembler(max_file_size=8)
    _part(asm, "address", ETH.encode())
    _part(asm, "key", b"k")
    asm.begin_part("file", "f.bin")
    asm.feed(b"1234")
    asm.feed(b"5678")
    asm.end_part()
    assert asm.finish().size == 8


def test_file_one_byte_over_limit_fails_and_drops_buffers():
    asm = UploadAssembler(max_file_size=8)
    asm.begin_part("file", "f.bin")
    asm.feed(b"12345678")
    with pytest.raises(PayloadTooLargeError) as ei:
        asm.feed(b"9")
    assert ei.value.message == "payload too large"
    assert ei.value.status_code == 400
    assert asm.state == AssemblerState.FAILED
    assert asm.buffered == 0


def test_field_over_limit():
    asm = UploadAssembler(max_field_size=4)
    asm.begin_part("key", None)
    with pytest.raises(PayloadTooLargeError, match="field too large"):
        asm.feed(b"12345")


def test_invalid_utf8_field():
    asm = UploadAssembler()
    asm.begin_part("key", None)
    asm.feed(b"\xff\xfe")
    with pytest.raises(IngestionError, match="not valid UTF-8"):
        asm.end_part()
    assert asm.state == AssemblerState.FAILED


def test_invalid_address_surfaces_as_address_error():
    asm = UploadAssembler()
    _part(asm, "address", b"not-an-address")
    _part(asm, "key", b"k")
    with pytest.raises(AddressError):
        asm.finish()
    assert asm.state == AssemblerState.FAILED


def test_events_after_failure_are_rejected():
    asm = UploadAssembler()
    asm.fail("client disconnected")
    asm.fail("again")
    assert asm.failure == "client disconnected"
    with pytest.raises(IngestionError, match="upload already finished"):
        asm.begin_part("key", None)


def test_out_of_order_events_are_malformed():
    asm = UploadAssembler()
    with pytest.raises(IngestionError, match="malformed multipart body"):
        asm.feed(b"data")
    assert asm.state == AssemblerState.FAILED
