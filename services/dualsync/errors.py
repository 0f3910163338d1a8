"""Failures that end one control intent.

The endpoint turns every ControlError into its ``{"error": ...}`` reply;
the message is shown to the caller verbatim.
"""


class ControlError(Exception):
    """An intent could not be carried out."""


class ValidationError(ControlError):
    """Rejected input.  Raised before any command is sent."""


class StatusUnavailable(ControlError):
    """A required player status could not be read."""


class ParticipantUnreachable(ControlError):
    """A participant stayed unreachable after the recovery attempt."""


class PathStoreError(ControlError):
    """The media selection record could not be read or written."""
