"""Property-based tests for command line splitting and value parsing.

Test Coverage:
- Random token lists never crash the tokenizer with anything but a TokenizeError
- Bare tokens always become output groups, in order
- Options written before a file always land in that file's group
- Number and duration parsing only ever raises ValueParseError
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from mediaopt.constants import GROUP_INFILE, GROUP_OUTFILE
from mediaopt.exceptions import TokenizeError, ValueParseError
from mediaopt.flags import OptionFlag
from mediaopt.numbers import parse_number, parse_time
from mediaopt.tokenizer import split_commandline

filenames = st.text(alphabet=st.characters(blacklist_categories=("Cs",)), min_size=1, max_size=20).filter(
    lambda s: not s.startswith("-")
)


@pytest.mark.unit
@pytest.mark.fuzzing
class TestTokenizerFuzzing:
    """Property-based tests for split_commandline."""

    @given(st.lists(st.text(max_size=12), max_size=12))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_arbitrary_tokens(self, mini_options, mini_groups, tokens):
        """Property: any token list is either split or rejected with a TokenizeError."""
        try:
            octx = split_commandline(tokens, mini_options, mini_groups)
        except TokenizeError:
            return
        recorded = sum(len(g) for g in octx.realized_groups()) + len(octx.global_opts) + len(octx.cur_group)
        assert recorded <= len(tokens)

    @given(st.lists(filenames, max_size=10))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_bare_tokens_are_outputs(self, mini_options, mini_groups, names):
        """Property: bare tokens become output groups in command line order."""
        octx = split_commandline(names, mini_options, mini_groups)
        assert [g.arg for g in octx.groups[GROUP_OUTFILE].groups] == names
        assert len(octx.groups[GROUP_INFILE]) == 0

    @given(st.lists(st.tuples(filenames, st.booleans(), st.integers(0, 3600)), min_size=1, max_size=6))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_options_bind_to_following_file(self, mini_options, mini_groups, files):
        """Property: '-t N' written before a file is recorded in that file's group."""
        args = []
        for name, is_input, seconds in files:
            args += ["-t", str(seconds)]
            args += ["-i", name] if is_input else [name]

        octx = split_commandline(args, mini_options, mini_groups)

        inputs = iter(octx.groups[GROUP_INFILE].groups)
        outputs = iter(octx.groups[GROUP_OUTFILE].groups)
        for name, is_input, seconds in files:
            group = next(inputs) if is_input else next(outputs)
            assert group.arg == name
            assert [(kv.key, kv.val) for kv in group.opts] == [("t", str(seconds))]


@pytest.mark.unit
@pytest.mark.fuzzing
class TestValueParsingFuzzing:
    """Property-based tests for literal parsing."""

    @given(st.text(max_size=20))
    def test_parse_number_only_raises_value_errors(self, text):
        """Property: arbitrary text parses or raises ValueParseError."""
        try:
            parse_number("x", text, OptionFlag.OPT_DOUBLE, -1e300, 1e300)
        except ValueParseError:
            pass

    @given(
        st.sampled_from(["", "-", "0x", "-0x"]),
        st.text(alphabet="0123456789abcdef", min_size=1, max_size=400),
        st.sampled_from(["", "e308", "e400", "Ki", "Yi", "E", "dB", "B"]),
    )
    def test_long_numerals_only_raise_value_errors(self, sign, digits, postfix):
        """Property: numerals of any length parse or raise ValueParseError."""
        try:
            parse_number("x", sign + digits + postfix, OptionFlag.OPT_INT64, -(2**63), 2**63 - 1)
        except ValueParseError:
            pass

    @given(st.text(max_size=20))
    def test_parse_time_only_raises_value_errors(self, text):
        """Property: arbitrary text parses or raises ValueParseError."""
        try:
            parse_time("t", text)
        except ValueParseError:
            pass

    @given(st.integers(0, 10**9))
    def test_integer_seconds_roundtrip(self, seconds):
        """Property: whole seconds convert exactly to microseconds."""
        assert parse_time("t", str(seconds)) == seconds * 1_000_000

    @given(st.integers(-(2**31), 2**31 - 1))
    def test_int_literals_roundtrip(self, value):
        """Property: every 32-bit integer literal parses to itself."""
        assert parse_number("x", str(value), OptionFlag.OPT_INT, -(2**31), 2**31 - 1) == value
