"""Failure classes shared by the chat pipeline.

Anything not listed here is treated as a terminal error by the chat router.
"""


class ConfigurationError(ValueError):
    """A required upstream credential is missing."""


class UpstreamTransientError(Exception):
    """Rate-limit / overload signal from the model provider (or a quota cooldown in effect)."""


class UpstreamMalformedOutput(Exception):
    """Model output that is not valid JSON or does not fit the response schema."""
