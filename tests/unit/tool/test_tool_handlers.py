"""Unit tests for the media tool's option handlers."""

import errno
import logging
from datetime import datetime

import pytest

from mediaopt.exceptions import OptionDefinitionError
from mediaopt.logging_utils import configure_logging
from mediaopt.parse_context import SpecifierOpt
from mediaopt.tool import handlers as h
from mediaopt.tool.context import InputFile, OptionsContext, StreamMap, ToolState


@pytest.fixture
def state_with_inputs(tool_state):
    """Provide a tool state that already planned two inputs."""
    tool_state.job.inputs.extend([InputFile(0, "a.mp4"), InputFile(1, "b.mkv")])
    return tool_state


@pytest.mark.unit
class TestListings:
    """Test the informational handlers."""

    def test_show_formats(self, tool_state, capsys):
        """Test that formats are listed with their capabilities."""
        assert h.show_formats(tool_state, None, "formats", "") == 0
        out = capsys.readouterr().out
        assert out.startswith("File formats:")
        assert " DE mp4" in out
        assert " D. lavfi" in out
        assert " .E null" in out

    def test_show_muxers_excludes_input_only(self, tool_state, capsys):
        """Test that demux-only formats are not muxers."""
        h.show_muxers(tool_state, None, "muxers", "")
        out = capsys.readouterr().out
        assert "lavfi" not in out
        assert "matroska" in out

    def test_show_codecs_marks_media_type(self, tool_state, capsys):
        """Test the three capability columns of codecs."""
        h.show_codecs(tool_state, None, "codecs", "")
        out = capsys.readouterr().out
        assert " DEV h264" in out
        assert " .EV libx264" in out
        assert " DEA aac" in out
        assert " DES subrip" in out

    def test_show_decoders_and_encoders(self, tool_state, capsys):
        """Test that encoder-only codecs are not decoders."""
        h.show_decoders(tool_state, None, "decoders", "")
        decoders = capsys.readouterr().out
        h.show_encoders(tool_state, None, "encoders", "")
        encoders = capsys.readouterr().out
        assert "libx264" not in decoders
        assert "libx264" in encoders

    @pytest.mark.parametrize(
        "handler,expected",
        [
            (h.show_bsfs, "aac_adtstoasc"),
            (h.show_protocols, "Supported file protocols:"),
            (h.show_filters, "scale"),
            (h.show_pix_fmts, "yuv420p"),
            (h.show_layouts, "FL+FR"),
            (h.show_sample_fmts, "fltp"),
            (h.show_colors, "#ff0000"),
            (h.show_license, "MIT License"),
            (h.show_version, "mediaopt version"),
            (h.show_buildconf, "configuration:"),
        ],
    )
    def test_other_listings(self, tool_state, capsys, handler, expected):
        """Test that each listing prints its content and succeeds."""
        assert handler(tool_state, None, "", "") == 0
        assert expected in capsys.readouterr().out

    def test_sources_of_unknown_device(self, tool_state, caplog):
        """Test that naming an unknown device fails with ENODEV."""
        with caplog.at_level(logging.ERROR):
            assert h.show_sources(tool_state, None, "sources", "nosuchdev") == -errno.ENODEV
        assert "Unknown input device 'nosuchdev'." in caplog.text

    def test_sinks_lists_output_devices(self, capsys):
        """Test the device listing with a catalog that has devices."""
        from mediaopt.tool.context import CatalogEntry

        state = ToolState()
        state.catalog.devices.append(CatalogEntry("pulse", "PulseAudio", "DE"))
        assert h.show_sinks(state, None, "sinks", "pulse,server=x") == 0
        assert "Auto-detected sinks for pulse:" in capsys.readouterr().out


@pytest.mark.unit
class TestGlobalSettings:
    """Test handlers that change process-wide settings."""

    @pytest.mark.parametrize(
        "arg,level",
        [("error", logging.ERROR), ("repeat+level+warning", logging.WARNING), ("48", logging.DEBUG)],
    )
    def test_loglevel(self, tool_state, arg, level):
        """Test that the console handler follows -loglevel."""
        configure_logging("info")
        assert h.opt_loglevel(tool_state, None, "loglevel", arg) == 0
        assert logging.getLogger().handlers[0].level == level

    def test_invalid_loglevel(self, tool_state, caplog):
        """Test that an unknown level is rejected with EINVAL."""
        with caplog.at_level(logging.ERROR):
            assert h.opt_loglevel(tool_state, None, "loglevel", "loud") == -errno.EINVAL
        assert 'Invalid loglevel "loud"' in caplog.text

    @pytest.mark.parametrize("arg,status", [("1024", 0), ("0", 0), ("-1", -errno.EINVAL), ("1k", -errno.EINVAL)])
    def test_max_alloc(self, tool_state, arg, status):
        """Test that max_alloc only takes non-negative decimal integers."""
        assert h.opt_max_alloc(tool_state, None, "max_alloc", arg) == status
        if status == 0:
            assert tool_state.max_alloc == int(arg)

    @pytest.mark.parametrize("arg", ["sse2+avx", "-avx2", "mmx,sse", "0", "SSE4.1"])
    def test_cpuflags_accepted(self, tool_state, arg):
        """Test recognized cpu flag expressions."""
        assert h.opt_cpuflags(tool_state, None, "cpuflags", arg) == 0
        assert tool_state.cpuflags == arg

    @pytest.mark.parametrize("arg", ["turbo", "sse2+", "avx;rm"])
    def test_cpuflags_rejected(self, tool_state, arg):
        """Test unknown flags and malformed expressions."""
        assert h.opt_cpuflags(tool_state, None, "cpuflags", arg) == -errno.EINVAL
        assert tool_state.cpuflags == ""


@pytest.mark.unit
class TestReport:
    """Test the report file."""

    def test_expand_template(self):
        """Test the %p, %t and %% escapes."""
        now = datetime(2025, 1, 2, 3, 4, 5)
        assert h._expand_report_template("%p-%t.log", "mediaopt", now) == "mediaopt-20250102-030405.log"
        assert h._expand_report_template("100%%.log", "x", now) == "100%.log"

    def test_report_from_env(self, tool_state, tmp_path, monkeypatch):
        """Test that file and level come from the environment setting."""
        monkeypatch.chdir(tmp_path)
        assert h.init_report(tool_state, env="file=%p-test.log:level=32") == 0
        assert tool_state.report_file == "mediaopt-test.log"
        assert (tmp_path / "mediaopt-test.log").exists()

    def test_report_only_once(self, tool_state, tmp_path, monkeypatch):
        """Test that a second request keeps the first report."""
        monkeypatch.chdir(tmp_path)
        h.init_report(tool_state, env="file=first.log")
        assert h.init_report(tool_state, env="file=second.log") == 0
        assert tool_state.report_file == "first.log"
        assert not (tmp_path / "second.log").exists()

    def test_default_report_name(self, tool_state, tmp_path, monkeypatch):
        """Test the default file name pattern."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("MEDIAOPT_REPORT", raising=False)
        assert h.opt_report(tool_state, None, "report", "1") == 0
        assert tool_state.report_file.startswith("mediaopt-")
        assert tool_state.report_file.endswith(".log")

    def test_invalid_report_level(self, tool_state):
        """Test that a bad level is rejected before any file is opened."""
        assert h.init_report(tool_state, env="level=loud") == -errno.EINVAL
        assert tool_state.report_file is None

    def test_unopenable_report(self, tool_state, tmp_path):
        """Test that an OSError becomes a negative errno."""
        missing_dir = tmp_path / "missing" / "r.log"
        assert h.init_report(tool_state, env=f"file={missing_dir}") == -errno.ENOENT


@pytest.mark.unit
class TestMap:
    """Test -map parsing."""

    def test_simple_map(self, state_with_inputs):
        """Test a file index with and without a specifier."""
        ctx = OptionsContext()
        assert h.opt_map(state_with_inputs, ctx, "map", "0") == 0
        assert h.opt_map(state_with_inputs, ctx, "map", "1:a:0?") == 0
        assert ctx.stream_maps == [
            StreamMap(file_index=0, specifier=""),
            StreamMap(file_index=1, specifier="a:0", optional=True),
        ]

    def test_negative_map_disables_matches(self, state_with_inputs):
        """Test that -map -N:spec disables earlier matching maps."""
        ctx = OptionsContext()
        h.opt_map(state_with_inputs, ctx, "map", "0:v")
        h.opt_map(state_with_inputs, ctx, "map", "0:a")
        h.opt_map(state_with_inputs, ctx, "map", "-0:v")
        assert [(m.specifier, m.disabled) for m in ctx.stream_maps] == [("v", True), ("a", False)]

    def test_negative_map_without_specifier(self, state_with_inputs):
        """Test that -map -N disables every map of that input."""
        ctx = OptionsContext()
        h.opt_map(state_with_inputs, ctx, "map", "0:v")
        h.opt_map(state_with_inputs, ctx, "map", "1:v")
        h.opt_map(state_with_inputs, ctx, "map", "-0")
        assert [m.disabled for m in ctx.stream_maps] == [True, False]

    def test_link_label(self, state_with_inputs):
        """Test a filter graph output label."""
        ctx = OptionsContext()
        assert h.opt_map(state_with_inputs, ctx, "map", "[outv]") == 0
        assert ctx.stream_maps == [StreamMap(linklabel="outv")]

    def test_sync_suffix_is_ignored(self, state_with_inputs):
        """Test that the deprecated sync stream suffix is dropped."""
        ctx = OptionsContext()
        assert h.opt_map(state_with_inputs, ctx, "map", "0:v,1:0") == 0
        assert ctx.stream_maps[0].specifier == "v"

    @pytest.mark.parametrize("arg", ["[bad", "[]", "x", "0x", ""])
    def test_invalid(self, state_with_inputs, arg):
        """Test malformed maps."""
        assert h.opt_map(state_with_inputs, OptionsContext(), "map", arg) == -errno.EINVAL

    def test_unknown_input(self, state_with_inputs, caplog):
        """Test that maps must name an opened input."""
        with caplog.at_level(logging.ERROR):
            assert h.opt_map(state_with_inputs, OptionsContext(), "map", "2:v") == -errno.EINVAL
        assert "Invalid input file index: 2." in caplog.text


@pytest.mark.unit
class TestPerFileHandlers:
    """Test time handlers and aliases."""

    def test_sseof_accepts_negative(self, tool_state):
        """Test that -sseof takes negative offsets."""
        ctx = OptionsContext()
        assert h.opt_sseof(tool_state, ctx, "sseof", "-10") == 0
        assert ctx.start_time_eof == -10_000_000

    def test_itsoffset(self, tool_state):
        """Test that -itsoffset takes signed offsets."""
        ctx = OptionsContext()
        h.opt_itsoffset(tool_state, ctx, "itsoffset", "-1.5")
        assert ctx.input_ts_offset == -1_500_000

    @pytest.mark.parametrize(
        "handler,field,specifier",
        [
            (h.opt_video_codec, "codec_names", "v"),
            (h.opt_audio_codec, "codec_names", "a"),
            (h.opt_subtitle_codec, "codec_names", "s"),
            (h.opt_data_codec, "codec_names", "d"),
            (h.opt_video_filters, "filters", "v"),
            (h.opt_audio_filters, "filters", "a"),
        ],
    )
    def test_string_aliases(self, tool_state, handler, field, specifier):
        """Test that aliases write through the table with their specifier."""
        ctx = OptionsContext()
        assert handler(tool_state, ctx, "alias", "value") == 0
        assert getattr(ctx, field) == [SpecifierOpt(specifier, "value")]

    def test_frame_aliases_parse_numbers(self, tool_state):
        """Test that frame count aliases are parsed as 64-bit integers."""
        ctx = OptionsContext()
        h.opt_video_frames(tool_state, ctx, "vframes", "100")
        h.opt_audio_frames(tool_state, ctx, "aframes", "1k")
        h.opt_data_frames(tool_state, ctx, "dframes", "3")
        assert ctx.max_frames == [SpecifierOpt("v", 100), SpecifierOpt("a", 1000), SpecifierOpt("d", 3)]

    def test_audio_qscale_alias(self, tool_state):
        """Test that -aq becomes -q:a."""
        ctx = OptionsContext()
        h.opt_audio_qscale(tool_state, ctx, "aq", "4.5")
        assert ctx.qscale == [SpecifierOpt("a", 4.5)]

    def test_alias_without_table(self):
        """Test that aliases need a bound option table."""
        with pytest.raises(OptionDefinitionError):
            h.opt_video_codec(ToolState(), OptionsContext(), "vcodec", "h264")

    def test_recording_timestamp(self, tool_state, caplog):
        """Test that -timestamp becomes creation_time metadata."""
        ctx = OptionsContext()
        with caplog.at_level(logging.WARNING):
            assert h.opt_recording_timestamp(tool_state, ctx, "timestamp", "2024-01-15T10:30:00Z") == 0
        assert ctx.metadata == [SpecifierOpt("", "creation_time=2024-01-15T10:30:00+0000")]
        assert "timestamp is deprecated" in caplog.text

    def test_disabled_media_types(self):
        """Test the -vn/-an/-sn/-dn summary."""
        ctx = OptionsContext(video_disable=True, data_disable=True)
        assert h.disabled_media_types(ctx) == ("video", "data")
