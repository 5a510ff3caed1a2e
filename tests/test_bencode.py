"""Tests for the bencode codec and infohash computation."""

import hashlib

import pytest

from coursetorrent import bencode
from coursetorrent.bencode import BencodeError
from coursetorrent.errors import FormatError

TORRENT = b"d8:announce3:url4:infod4:name4:test12:piece lengthi16384e6:pieces20:01234567890123456789ee"
INFO_BYTES = b"d4:name4:test12:piece lengthi16384e6:pieces20:01234567890123456789e"


class TestDecode:
    """Tests for bencode decoding."""

    def test_decode_integer(self) -> None:
        assert bencode.decode(b"i42e") == 42
        assert bencode.decode(b"i-7e") == -7
        assert bencode.decode(b"i0e") == 0

    def test_decode_string(self) -> None:
        assert bencode.decode(b"4:spam") == b"spam"
        assert bencode.decode(b"0:") == b""

    def test_decode_list(self) -> None:
        assert bencode.decode(b"l4:spami3ee") == [b"spam", 3]

    def test_decode_dict_keys_are_str(self) -> None:
        assert bencode.decode(b"d3:cow3:moo4:spaml1:a1:bee") == {"cow": b"moo", "spam": [b"a", b"b"]}

    def test_binary_key_round_trip(self) -> None:
        """Non UTF-8 keys (raw infohashes) decode to str and re-encode to the same bytes."""
        raw = bytes(range(236, 256))
        data = b"d5:filesd20:" + raw + b"d8:completei5eeee"
        decoded = bencode.decode(data)

        assert bencode.binary_key(raw) in decoded["files"]
        assert bencode.encode(decoded) == data

    @pytest.mark.parametrize(
        ("data", "message"),
        [
            (b"", "Unexpected end"),
            (b"i42", "Unterminated integer"),
            (b"iabce", "Invalid integer"),
            (b"i4 2e", "Invalid integer"),
            (b"5:abc", "exceeds data"),
            (b"3x:abc", "Invalid string length"),
            (b"4spam", "No colon"),
            (b"l4:spam", "Unterminated list"),
            (b"d3:cow3:moo", "Unterminated dictionary"),
            (b"di1e3:mooe", "key must be a byte string"),
            (b"x", "Unexpected character"),
            (b"i1ei2e", "Trailing data"),
        ],
    )
    def test_malformed_input(self, data: bytes, message: str) -> None:
        with pytest.raises(BencodeError, match=message):
            bencode.decode(data)

    def test_bencode_error_is_format_error(self) -> None:
        with pytest.raises(FormatError):
            bencode.decode(b"l")


class TestEncode:
    """Tests for canonical encoding."""

    def test_encode_scalars(self) -> None:
        assert bencode.encode(42) == b"i42e"
        assert bencode.encode(b"spam") == b"4:spam"
        assert bencode.encode("spam") == b"4:spam"
        assert bencode.encode(True) == b"i1e"

    def test_dict_keys_sorted_by_bytes(self) -> None:
        assert bencode.encode({"zeta": 1, "alpha": 2, b"mid": 3}) == b"d5:alphai2e3:midi3e4:zetai1ee"

    def test_duplicate_keys_rejected(self) -> None:
        with pytest.raises(BencodeError, match="Duplicate"):
            bencode.encode({"a": 1, b"a": 2})

    def test_unsupported_type(self) -> None:
        with pytest.raises(BencodeError, match="Cannot encode"):
            bencode.encode(1.5)

    def test_canonical_input_reencodes_identically(self) -> None:
        assert bencode.encode(bencode.decode(TORRENT)) == TORRENT


class TestInfoHash:
    """Tests for infohash computation."""

    def test_info_hash_matches_source_bytes(self) -> None:
        assert bencode.info_hash(TORRENT) == hashlib.sha1(INFO_BYTES).digest()

    def test_info_hash_is_stable(self) -> None:
        assert bencode.info_hash(TORRENT) == bencode.info_hash(bytes(TORRENT))
        assert len(bencode.info_hash(TORRENT).hex()) == 40

    def test_info_hash_ignores_trackers(self) -> None:
        with_list = bencode.encode(
            {"announce-list": [[b"http://a/announce"], [b"http://b/announce"]], "info": bencode.decode(INFO_BYTES)}
        )
        assert bencode.info_hash(with_list) == bencode.info_hash(TORRENT)

    def test_missing_info(self) -> None:
        with pytest.raises(FormatError, match="info"):
            bencode.info_hash(b"d8:announce3:urle")

    def test_not_a_dictionary(self) -> None:
        with pytest.raises(FormatError, match="dictionary"):
            bencode.info_hash(b"l4:infoe")

    def test_info_hash_uses_unsorted_source_bytes(self) -> None:
        """Keys out of canonical order are hashed as written, not re-encoded."""
        unsorted_info = b"d4:name1:a6:lengthi1e12:piece lengthi16384e6:pieces20:01234567890123456789e"
        data = b"d8:announce3:url4:info" + unsorted_info + b"e"

        assert bencode.info_hash(data) == hashlib.sha1(unsorted_info).digest()
        assert bencode.info_hash(data) != hashlib.sha1(bencode.encode(bencode.decode(unsorted_info))).digest()


class TestRawEntry:
    """Tests for slicing source bytes of a top-level value."""

    def test_slices_value(self) -> None:
        assert bencode.raw_entry(TORRENT, "info") == INFO_BYTES
        assert bencode.raw_entry(TORRENT, "announce") == b"3:url"

    def test_missing_key(self) -> None:
        assert bencode.raw_entry(TORRENT, "comment") is None

    def test_repeated_key_last_wins(self) -> None:
        assert bencode.raw_entry(b"d1:ai1e1:ai2ee", "a") == b"i2e"

    def test_not_a_dictionary(self) -> None:
        with pytest.raises(BencodeError):
            bencode.raw_entry(b"li1ee", "a")
