"""Unit tests for stream specifier matching."""

import pytest

from mediaopt.exceptions import ValueParseError
from mediaopt.parse_context import SpecifierOpt
from mediaopt.specifiers import StreamInfo, check_stream_specifier, last_value, match_per_stream_opt, values_for


@pytest.fixture
def streams():
    """Provide a file with two video, two audio and one subtitle stream."""
    return [
        StreamInfo(0, "video", stream_id=0x100, program_ids=(1,)),
        StreamInfo(1, "audio", stream_id=0x101, program_ids=(1,), metadata={"language": "eng"}),
        StreamInfo(2, "audio", stream_id=0x102, program_ids=(2,), metadata={"language": "fra"}),
        StreamInfo(3, "subtitle", metadata={"title": "Forced"}, usable=False),
        StreamInfo(4, "video", attached_pic=True),
    ]


def _matching(spec, streams):
    return [s.index for s in streams if check_stream_specifier(spec, s, streams)]


@pytest.mark.unit
class TestCheckStreamSpecifier:
    """Test each specifier form against a known stream layout."""

    @pytest.mark.parametrize(
        "spec,expected",
        [
            ("", [0, 1, 2, 3, 4]),
            ("2", [2]),
            ("v", [0, 4]),
            ("V", [0]),
            ("a", [1, 2]),
            ("a:1", [2]),
            ("v:1", [4]),
            ("s", [3]),
            ("d", []),
            ("p:1", [0, 1]),
            ("p:1:a", [1]),
            ("p:2:0", [2]),
            ("#0x101", [1]),
            ("i:258", [2]),
            ("m:language", [1, 2]),
            ("m:language:fra", [2]),
            ("a:m:language:eng", [1]),
            ("u", [0, 1, 2, 4]),
        ],
    )
    def test_matches(self, streams, spec, expected):
        """Test which streams each specifier selects."""
        assert _matching(spec, streams) == expected

    def test_single_stream_default(self):
        """Test that positions default to the stream alone."""
        stream = StreamInfo(7, "audio")
        assert check_stream_specifier("a:0", stream)
        assert check_stream_specifier("7", stream)

    @pytest.mark.parametrize("spec", ["x", "a:x", "p:one", "#zz", "m:", "1a"])
    def test_invalid(self, streams, spec):
        """Test that malformed specifiers raise."""
        with pytest.raises(ValueParseError, match="Invalid stream specifier"):
            check_stream_specifier(spec, streams[1], streams)


@pytest.mark.unit
class TestPerStreamValues:
    """Test selecting accumulated specifier values for a stream."""

    def test_last_match_wins(self, streams):
        """Test that the most recent matching value is chosen."""
        values = [SpecifierOpt("", "copy"), SpecifierOpt("a", "aac"), SpecifierOpt("a:1", "opus")]
        assert match_per_stream_opt(values, streams[0], streams) == "copy"
        assert match_per_stream_opt(values, streams[1], streams) == "aac"
        assert match_per_stream_opt(values, streams[2], streams) == "opus"

    def test_no_match(self, streams):
        """Test that None is returned when nothing matches."""
        assert match_per_stream_opt([SpecifierOpt("s", "srt")], streams[0], streams) is None

    def test_values_for_exact_specifier(self):
        """Test lookups by the literal specifier."""
        values = [SpecifierOpt("v", "h264"), SpecifierOpt("a", "aac"), SpecifierOpt("v", "hevc")]
        assert values_for(values, "v") == ["h264", "hevc"]
        assert values_for(values, "s") == []

    def test_last_value(self):
        """Test the most recent value regardless of specifier."""
        assert last_value([SpecifierOpt("v", 1), SpecifierOpt("a", 2)]) == 2
        assert last_value([]) is None
