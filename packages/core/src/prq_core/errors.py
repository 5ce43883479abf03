"""Exception hierarchy for prq.

The CLI catches PrqError at the top and prints its message; everything
below it decides only *which* class to raise.
"""

from __future__ import annotations


class PrqError(Exception):
    """Base class for every error prq reports to the operator."""


class InputError(PrqError, ValueError):
    """Bad operator input: PR reference, event override, stored payload."""


class PayloadDecodeError(InputError):
    """A saved draft payload could not be decoded (store corruption)."""


class DiffParseError(InputError):
    """A hunk header in a diff could not be parsed."""


class NoDraftError(PrqError):
    """No saved draft exists for the PR being submitted."""

    def __init__(self, pr_ref: str):
        super().__init__(f"no saved draft for {pr_ref}; run `prq draft {pr_ref}` or `prq review {pr_ref}` first")
        self.pr_ref = pr_ref


class UpstreamError(PrqError):
    """A code-host or AI provider call failed."""


class SchemaValidationError(UpstreamError):
    """Provider output was not valid JSON or did not match the review plan schema."""


class OperationCancelled(UpstreamError):
    """An external call timed out or was interrupted before returning."""
