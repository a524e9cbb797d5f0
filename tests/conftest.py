"""Pytest configuration and shared fixtures for the mediaopt test suite.

This module provides shared fixtures and test configuration used across
the unit and integration tests.
"""

import logging
import os

import pytest
from hypothesis import Phase, Verbosity, settings

from mediaopt.flags import OptionFlag
from mediaopt.registry import Callback, FixedLocation, OptionDef, OptionGroupDef, field_selector
from mediaopt.tool.context import OptionsContext, ToolState
from mediaopt.tool.table import build_options

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "fuzzing: Property-based tests driven by Hypothesis")


class Globals:
    """Process-lifetime destination for fixed-location test options."""

    def __init__(self):
        self.hide_banner = False
        self.verbose = 0


@pytest.fixture
def globals_target() -> Globals:
    """Provide a fresh holder for fixed-location options."""
    return Globals()


@pytest.fixture
def mini_groups() -> list[OptionGroupDef]:
    """Provide the two media tool group kinds: output (unnamed) and input (-i)."""
    return [
        OptionGroupDef("output url", None, OptionFlag.OPT_OUTPUT),
        OptionGroupDef("input url", "i", OptionFlag.OPT_INPUT),
    ]


@pytest.fixture
def handler_calls() -> list[tuple]:
    """Collect the calls made to the test handler."""
    return []


@pytest.fixture
def mini_options(globals_target, handler_calls) -> list[OptionDef]:
    """Provide a small option table covering every destination shape.

    Returns
    -------
    list[OptionDef]
        hide_banner (global bool), verbose (global int), c (specifier
        string), t (time), ss (input time), f (string), shortest (output
        bool), note (callback), h (exit with optional topic)

    """

    def note(ctx, key, arg):
        handler_calls.append((ctx, key, arg))
        return -22 if arg == "fail" else 0

    f = OptionFlag
    return [
        OptionDef("hide_banner", f.OPT_BOOL | f.OPT_EXPERT, FixedLocation(globals_target, "hide_banner"),
                  "do not show program banner"),
        OptionDef("verbose", f.HAS_ARG | f.OPT_INT, FixedLocation(globals_target, "verbose"), "verbosity"),
        OptionDef("c", f.HAS_ARG | f.OPT_STRING | f.OPT_SPEC | f.OPT_INPUT | f.OPT_OUTPUT,
                  field_selector(OptionsContext, "codec_names"), "codec name", "codec"),
        OptionDef("t", f.HAS_ARG | f.OPT_TIME | f.OPT_OFFSET | f.OPT_INPUT | f.OPT_OUTPUT,
                  field_selector(OptionsContext, "recording_time"), "duration", "duration"),
        OptionDef("ss", f.HAS_ARG | f.OPT_TIME | f.OPT_OFFSET | f.OPT_INPUT,
                  field_selector(OptionsContext, "start_time"), "set the start time offset", "time_off"),
        OptionDef("f", f.HAS_ARG | f.OPT_STRING | f.OPT_OFFSET | f.OPT_INPUT | f.OPT_OUTPUT,
                  field_selector(OptionsContext, "format"), "force format", "fmt"),
        OptionDef("shortest", f.OPT_BOOL | f.OPT_OFFSET | f.OPT_OUTPUT,
                  field_selector(OptionsContext, "shortest"), "finish encoding within shortest input"),
        OptionDef("note", f.HAS_ARG | f.OPT_PERFILE | f.OPT_INPUT | f.OPT_OUTPUT, Callback(note), "record a note"),
        OptionDef("h", f.OPT_EXIT, Callback(lambda ctx, key, arg: 0), "show help", "topic"),
    ]


@pytest.fixture
def tool_state() -> ToolState:
    """Provide a tool state with its option table bound."""
    state = ToolState()
    build_options(state)
    return state


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Restore root logger handlers and level after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
