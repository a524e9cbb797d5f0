#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for mediaopt.

Constants are organized by category:
1. Command line syntax
2. Group kinds
3. Numeric bounds and timestamps
4. Environment and configuration
5. Exit codes
"""

from __future__ import annotations

import sys

# =============================================================================
# Command line syntax
# =============================================================================

PROGRAM_NAME = "mediaopt"

FLAG_PREFIX = "-"
DASHDASH = "--"
NEGATION_PREFIX = "no"
SPECIFIER_SEPARATOR = ":"

# Implicit arguments recorded for boolean options
IMPLICIT_TRUE = "1"
IMPLICIT_FALSE = "0"

# =============================================================================
# Group kinds (positions in the group definition table)
# =============================================================================

GROUP_OUTFILE = 0
GROUP_INFILE = 1

# =============================================================================
# Numeric bounds and timestamps
# =============================================================================

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
FLT_MAX = 3.4028234663852886e38
DBL_MAX = sys.float_info.max

# Sentinel for "no timestamp", same value the media library uses
NOPTS_VALUE = INT64_MIN

# =============================================================================
# Environment and configuration
# =============================================================================

ENV_CONFIG = "MEDIAOPT_CONFIG"
ENV_REPORT = "MEDIAOPT_REPORT"

CONFIG_BASENAME = ".mediaopt"
CONFIG_EXTENSIONS = (".toml", ".yaml", ".yml", ".json")
PYPROJECT_SECTION = "mediaopt"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SCALER_FLAGS = "bicubic"

# =============================================================================
# Exit codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_TOKENIZE_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_CONFIG_ERROR = 5
