"""Error taxonomy for audit runs.

Configuration errors are reported per item and the run continues.
Connectivity errors abort the run: nothing is meaningful without the database.
"""

from __future__ import annotations


class GmanError(Exception):
    """Base class for every error raised by gman."""


class ConfigurationError(GmanError):
    """A single definition, patch or directory does not match expectations."""


class DefinitionError(ConfigurationError):
    """A folder definition file could not be loaded."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class PatchNameError(ConfigurationError, ValueError):
    """A patch file name does not follow the ``<label><number> (<text>).sql`` convention."""

    def __init__(self, file_name: str):
        super().__init__(f"Patch file name does not meet the naming guidelines: {file_name}")
        self.file_name = file_name


class ConnectivityError(GmanError):
    """The database could not be reached, or the connection was lost."""


class QueryError(GmanError):
    """A lookup statement failed to execute."""

    def __init__(self, statement: str, message: str):
        super().__init__(message)
        self.statement = statement
