"""Documented exit codes for the tdsgrade CLI.

Exit codes follow UNIX conventions:
- 0: Success
- 1: General/unspecified error
- 2: Invalid command-line arguments or usage
- 3-5: Application-specific errors

Usage:
    from tdsgrade.util.exit_codes import ExitCode
    sys.exit(ExitCode.INPUT_NOT_FOUND)
"""

from __future__ import annotations


class ExitCode:
    """Exit code constants for tdsgrade processes.

    Attributes:
        SUCCESS: Normal termination, no errors.
        GENERAL_ERROR: Unspecified runtime error.
        INVALID_ARGS: Command-line argument validation failed.
        INPUT_NOT_FOUND: A profile file passed on the command line does not exist.
        INVALID_INPUT: A profile file could not be parsed into a tasting profile.
        CONFIG_ERROR: Product configuration or settings failed validation.
    """

    SUCCESS: int = 0
    GENERAL_ERROR: int = 1
    INVALID_ARGS: int = 2
    INPUT_NOT_FOUND: int = 3
    INVALID_INPUT: int = 4
    CONFIG_ERROR: int = 5

    @classmethod
    def message(cls, code: int) -> str:
        """Return a human-readable message for an exit code."""
        messages = {
            cls.SUCCESS: "Success",
            cls.GENERAL_ERROR: "General error",
            cls.INVALID_ARGS: "Invalid arguments",
            cls.INPUT_NOT_FOUND: "Input file not found",
            cls.INVALID_INPUT: "Invalid tasting profile",
            cls.CONFIG_ERROR: "Configuration error",
        }
        return messages.get(code, f"Unknown exit code {code}")
