"""
Exception hierarchy for the mangankyo pipeline.

Acquisition and precondition failures are recoverable and reported to the
caller. Invariant violations mean the session was set up wrong and end the
render loop.
"""


class MangankyoError(Exception):
    """Base class for all mangankyo errors."""


class AcquisitionError(MangankyoError):
    """A frame source could not be opened."""

    KINDS = ("not_found", "permission_denied", "unsupported", "unavailable")

    def __init__(self, kind: str, message: str = ""):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown acquisition error kind: {kind!r}")
        self.kind = kind
        self.message = message
        super().__init__(f"{kind}: {message}" if message else kind)

    def user_message(self) -> str:
        """Short text suitable for showing to the person at the camera."""
        if self.kind == "not_found":
            return "The requested device was not found. Change the settings and try again."
        if self.kind == "permission_denied":
            return "Camera access was denied."
        if self.kind == "unsupported":
            return "Video capture is not supported on this system."
        return self.message or "The frame source is unavailable."


class PreconditionError(MangankyoError):
    """An operation was requested before the data it needs exists."""


class RenderInvariantViolation(MangankyoError):
    """The render loop found its setup contract broken."""
