"""Exception hierarchy for the probe.

Only failures that prevent a meaningful sensor reading are exceptions.
An empty result or an out-of-range return index is reported through the
sentinel sensor record instead.
"""

from __future__ import annotations


class ProbeError(Exception):
    """Base class for all probe failures.

    ``exit_code`` is the process exit status the CLI uses when the error
    reaches it.
    """

    exit_code = 1


class ConfigurationError(ProbeError):
    """A required parameter is missing or invalid."""

    exit_code = 2


class EnumerationError(ProbeError):
    """The CA or template directory could not be queried."""
