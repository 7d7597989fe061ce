import pytest

from basin_gateway.addressing import Address, AddressError, InvalidKeyError, normalize_address, normalize_key
from basin_gateway.errors import BadRequestError

ETH = "0x52963ef50e27e06d72d59fcb4f3c2a687be3cfef"
NATIVE = "t410fkkld55ioe7qg24wvt7fu6pbknb56ht7pt4zamxa"
EIP55 = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_eth_address_maps_to_delegated_native_form():
    addr = normalize_address(ETH)
    assert addr.is_eth()
    assert str(addr) == NATIVE
    assert addr.to_eth().lower() == ETH


def test_native_and_eth_forms_normalize_to_same_address():
    assert normalize_address(NATIVE) == normalize_address(ETH)
    assert normalize_address("f" + NATIVE[1:]).network == "f"


def test_normalization_is_idempotent():
    for raw in (ETH, ETH.upper().replace("0X", "0x"), EIP55, NATIVE, "t01234", "  t01234 "):
        once = normalize_address(raw)
        assert normalize_address(str(once)) == once
        assert str(normalize_address(str(once))) == str(once)


def test_uppercase_native_input_is_accepted():
    assert str(normalize_address(NATIVE.upper())) == NATIVE


def test_eip55_checksum_enforced_for_mixed_case():
    assert normalize_address(EIP55).to_eth() == EIP55
    broken = EIP55.replace("aAeb", "aaeb")
    with pytest.raises(AddressError):
        normalize_address(broken)


def test_id_address():
    addr = normalize_address("t01234")
    assert addr.actor_id == 1234
    assert str(addr) == "t01234"
    assert str(Address.from_id(0)) == "t00"


def test_fixed_length_protocols_round_trip():
    for protocol, size in ((1, 20), (2, 20), (3, 48)):
        addr = Address(protocol=protocol, payload=bytes(range(size)))
        assert normalize_address(str(addr)) == addr


def test_native_checksum_mismatch_rejected():
    bad = NATIVE[:-1] + ("a" if NATIVE[-1] != "a" else "b")
    with pytest.raises(AddressError):
        normalize_address(bad)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "0x",
        "0x1234",
        "0x" + "g" * 40,
        "x01234",
        "t91234",
        "t0",
        "t0abc",
        "t0" + "9" * 25,
        "t1aaaa",
        "t410",
        "t410faaaa",
        "t4aaaaaa",
        "hello world",
        "t1!!!!",
        "ééé",
    ],
)
def test_junk_is_rejected_as_bad_request(raw):
    with pytest.raises(BadRequestError) as ei:
        normalize_address(raw)
    assert ei.value.status_code == 400


def test_non_string_rejected():
    with pytest.raises(AddressError):
        normalize_address(None)


def test_to_eth_undefined_for_id_address():
    with pytest.raises(AddressError):
        normalize_address("t01").to_eth()


def test_keys():
    assert normalize_key("greeting") == "greeting"
    assert normalize_key(" padded ") == " padded "
    for bad in ("", "   ", None):
        with pytest.raises(InvalidKeyError):
            normalize_key(bad)
