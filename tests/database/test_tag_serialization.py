import pytest

from helpdesk.database.tag_serialization import decode_tags, encode_tags


def test_empty_inputs_decode_to_empty_list():
    assert decode_tags(None) == []
    assert decode_tags(b"") == []
    assert encode_tags([]) == b"\x00\x00\x00\x00"


def test_layout_is_count_then_prefixed_strings():
    assert encode_tags(["py", "é"]) == b"\x02\x00\x00\x00" + b"\x02py" + b"\x02\xc3\xa9"


def test_long_tag_uses_multi_byte_length():
    tag = "a" * 200
    data = encode_tags([tag])
    # 200 = 0b1_1001000 -> 0xC8 0x01
    assert data[4:6] == b"\xc8\x01"
    assert decode_tags(data) == [tag]


def test_order_and_unicode_are_preserved():
    tags = ["beta", "alpha", "日本語", ""]
    assert decode_tags(encode_tags(tags)) == tags


@pytest.mark.parametrize(
    "data",
    [
        b"\x01\x00",                      # count cut short
        b"\x01\x00\x00\x00",              # missing length prefix
        b"\x01\x00\x00\x00\x05ab",        # string runs past the end
        b"\xff\xff\xff\xff",              # negative count
        b"\x01\x00\x00\x00\xff\xff\xff\xff\xff\x01",  # length prefix too long
    ],
)
def test_malformed_data_raises(data):
    with pytest.raises(ValueError):
        decode_tags(data)
