#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the mediaopt option engine.

This module defines the exception classes raised while splitting a command
line into option groups and while applying those groups to their
destinations. They carry the offending option key and value so that every
error report can name what went wrong.

Exception Hierarchy
-------------------
- MediaOptError (base exception)

  - OptionDefinitionError (malformed option tables, contract violations)

  - TokenizeError (command line splitting)
    - MissingArgumentError (separator or option without its argument)
    - UnrecognizedOptionError (unknown option name)

  - ApplyError (group application)
    - ScopeMismatchError (input option on an output file or vice versa)
    - ValueParseError (numeric / time literal rejected)
    - HandlerError (callback option reported a negative status)

  - OpenFileError (the open step rejected a populated file context)

  - ConfigError (configuration file loading)

"""

from typing import Any


class MediaOptError(Exception):
    """Base exception class for all mediaopt-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class OptionDefinitionError(MediaOptError):
    """Exception raised for malformed option tables.

    Raised when an option definition pairs its flags with the wrong kind of
    destination, or when an option that needs a per-file context is applied
    without one. These are programming errors in the option table, not user
    errors.
    """


class TokenizeError(MediaOptError):
    """Base exception for failures while splitting the command line.

    Parameters
    ----------
    message : str
        Description of the failure
    option : str, optional
        The option token (without the leading dash) that caused it
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, option: str | None = None, original_error: Exception | None = None):
        """Initialize the tokenize error."""
        super().__init__(message, original_error=original_error)
        self.option = option


class MissingArgumentError(TokenizeError):
    """Exception raised when a separator or option is missing its argument."""

    def __init__(self, option: str, message: str | None = None):
        """Initialize the missing argument error."""
        if message is None:
            message = f"Missing argument for option '{option}'."
        super().__init__(message, option=option)


class UnrecognizedOptionError(TokenizeError):
    """Exception raised for an option name no registry recognizes."""

    def __init__(self, option: str, message: str | None = None):
        """Initialize the unrecognized option error."""
        if message is None:
            message = f"Unrecognized option '{option}'."
        super().__init__(message, option=option)


class ApplyError(MediaOptError):
    """Base exception for failures while applying an option group.

    Parameters
    ----------
    message : str
        Description of the failure
    option : str, optional
        Option key as written on the command line
    value : any, optional
        The argument that was being applied
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        option: str | None = None,
        value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the apply error with option details."""
        super().__init__(message, original_error=original_error)
        self.option = option
        self.value = value


class ScopeMismatchError(ApplyError):
    """Exception raised when an option is applied to a group it does not belong to.

    Parameters
    ----------
    option : str
        Option key as written on the command line
    help_text : str
        Help text of the option definition
    group_name : str
        Name of the group definition (e.g. "output url")
    group_arg : str
        Positional argument of the group (the filename)

    """

    def __init__(self, option: str, help_text: str, group_name: str, group_arg: str):
        """Initialize the scope mismatch error."""
        message = (
            f"Option {option} ({help_text}) cannot be applied to {group_name} {group_arg} -- "
            "you are trying to apply an input option to an output file or vice versa. "
            "Move this option before the file it belongs to."
        )
        super().__init__(message, option=option)
        self.group_name = group_name
        self.group_arg = group_arg


class ValueParseError(ApplyError):
    """Exception raised when a numeric or time literal cannot be accepted."""


class HandlerError(ApplyError):
    """Exception raised when a callback option reports a negative status.

    Parameters
    ----------
    option : str
        Option key as written on the command line
    value : str
        The argument passed to the handler
    status : int
        Negative status returned by the handler
    reason : str
        Human-readable description of the status

    """

    def __init__(self, option: str, value: str, status: int, reason: str):
        """Initialize the handler error."""
        super().__init__(f"Failed to set value '{value}' for option '{option}': {reason}", option=option, value=value)
        self.status = status


class OpenFileError(MediaOptError):
    """Exception raised when the open step rejects an input or output file."""

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        file_kind: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the open file error."""
        super().__init__(message, original_error=original_error)
        self.filename = filename
        self.file_kind = file_kind


class ConfigError(MediaOptError):
    """Exception raised when a configuration file cannot be loaded."""

    def __init__(self, message: str, config_path: str | None = None, original_error: Exception | None = None):
        """Initialize the config error."""
        super().__init__(message, original_error=original_error)
        self.config_path = config_path
