"""Tests for the metainfo models and parser."""

import hashlib

import pytest

from coursetorrent.errors import FormatError
from coursetorrent.torrent_parser import Torrent, TorrentFile, TorrentInfo, parse_metainfo


class TestParseMetainfo:
    """Tests for parse_metainfo."""

    def test_parse_single_file_torrent(self) -> None:
        """Test parsing a single file torrent."""
        content = b"d8:announce20:http://tracker.local4:infod6:lengthi1024e4:name8:test.txt12:piece lengthi16384e6:pieces20:01234567890123456789ee"

        metainfo = parse_metainfo(content)

        assert metainfo.torrent.info.name == "test.txt"
        assert metainfo.torrent.info.total_size == 1024
        assert metainfo.torrent.info.piece_length == 16384
        assert metainfo.announce_tiers == [["http://tracker.local"]]

    def test_parse_multi_file_torrent(self) -> None:
        """Test parsing a multi-file torrent."""
        content = b"d4:infod5:filesld6:lengthi100e4:pathl5:a.txteed6:lengthi200e4:pathl5:b.txteee4:name6:folder12:piece lengthi16384e6:pieces20:01234567890123456789ee"

        info = parse_metainfo(content).torrent.info

        assert info.name == "folder"
        assert info.total_size == 300
        assert info.files is not None
        assert [f.full_path for f in info.files] == ["a.txt", "b.txt"]

    def test_info_hash(self) -> None:
        """Test info hash calculation over the exact info bytes."""
        info_dict = b"d6:lengthi1024e4:name8:test.txt12:piece lengthi16384e6:pieces20:01234567890123456789e"
        content = b"d4:info" + info_dict + b"e"

        metainfo = parse_metainfo(content)

        assert metainfo.info_hash == hashlib.sha1(info_dict).digest()
        assert metainfo.info_hash_hex == hashlib.sha1(info_dict).hexdigest()
        assert len(metainfo.info_hash_hex) == 40

    def test_info_hash_non_canonical_info(self) -> None:
        """Test that an info dictionary with unsorted keys is hashed as written."""
        info_dict = b"d4:name8:test.txt6:lengthi1024ee"
        metainfo = parse_metainfo(b"d4:info" + info_dict + b"e")

        assert metainfo.info_hash == hashlib.sha1(info_dict).digest()
        assert metainfo.torrent.info.name == "test.txt"

    def test_announce_list_takes_precedence(self) -> None:
        """Test decoding of announce-list tiers (announce is ignored when present)."""
        content = (
            b"d"
            b"8:announce17:http://tracker.io"
            b"13:announce-list"
            b"l"
            b"l17:http://tracker.io16:http://mirror.ioe"
            b"l16:http://backup.ioe"
            b"e"
            b"4:info"
            b"d4:name4:test12:piece lengthi16384e6:pieces20:01234567890123456789e"
            b"e"
        )

        metainfo = parse_metainfo(content)

        assert metainfo.announce_tiers == [["http://tracker.io", "http://mirror.io"], ["http://backup.io"]]

    def test_no_trackers(self) -> None:
        """Test a torrent with neither announce nor announce-list."""
        metainfo = parse_metainfo(b"d4:infod4:name4:testee")
        assert metainfo.announce_tiers == []

    def test_minimal_info_dictionary(self) -> None:
        """Only a dictionary 'info' entry is required."""
        metainfo = parse_metainfo(b"d8:announce3:url4:infodee")

        assert metainfo.torrent.info.name is None
        assert metainfo.info == {}
        assert metainfo.info_hash == hashlib.sha1(b"de").digest()

    def test_malformed_optional_fields_are_ignored(self) -> None:
        """Wrongly typed optional keys do not make the torrent invalid."""
        content = b"d7:comment" b"i5e" b"4:infod4:namei3e12:piece lengthi0e6:lengthi-1eee"

        metainfo = parse_metainfo(content)

        assert metainfo.torrent.comment is None
        assert metainfo.torrent.info.name is None
        assert metainfo.torrent.info.piece_length is None
        assert metainfo.torrent.info.length is None

    def test_empty_tiers_dropped(self) -> None:
        content = b"d13:announce-listllel8:http://aei3ee4:infodee"
        assert parse_metainfo(content).announce_tiers == [["http://a"]]

    def test_bytes_to_string_conversion(self) -> None:
        """Test that bytes fields are properly converted to strings."""
        content = (
            b"d"
            b"7:comment13:Unicode: \xc3\xa9\xc3\xa0"
            b"4:info"
            b"d4:name14:test\xc3\xa9file.txte"
            b"e"
        )

        torrent = parse_metainfo(content).torrent

        assert torrent.info.name == "testéfile.txt"
        assert torrent.comment == "Unicode: éà"

    @pytest.mark.parametrize(
        "content",
        [
            b"x",
            b"d4:infod12:piece lengthi16384",
            b"l4:infoe",
            b"d8:announce3:urle",
            b"d4:info4:teste",
        ],
    )
    def test_invalid_metainfo(self, content: bytes) -> None:
        """Test that malformed files raise FormatError."""
        with pytest.raises(FormatError):
            parse_metainfo(content)


class TestModels:
    """Tests for the Torrent, TorrentInfo and TorrentFile models."""

    def test_full_path_multiple_components(self) -> None:
        tf = TorrentFile(length=1024, path=["dir", "subdir", "file.txt"])
        assert tf.full_path == "dir/subdir/file.txt"

    def test_piece_count(self) -> None:
        info = TorrentInfo(name="test", piece_length=16384, pieces=b"01234567890123456789" * 2, length=32768)
        assert info.piece_count == 2

    def test_single_announce_becomes_tier(self) -> None:
        torrent = Torrent(info=TorrentInfo(name="test"), announce="http://tracker.example.com/announce")
        assert torrent.get_announce_tiers() == [["http://tracker.example.com/announce"]]

    def test_announce_tiers_are_copies(self) -> None:
        torrent = Torrent(info=TorrentInfo(), announce_list=[["http://a"], ["http://b"]])
        tiers = torrent.get_announce_tiers()
        tiers[0].append("http://c")
        assert torrent.get_announce_tiers() == [["http://a"], ["http://b"]]

    def test_creation_datetime(self) -> None:
        torrent = Torrent(info=TorrentInfo(name="test"), creation_date=1700000000)
        assert torrent.creation_datetime is not None
        assert torrent.creation_datetime.year == 2023
