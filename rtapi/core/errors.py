"""Error types raised by rtapi."""


class RtapiError(Exception):
    """Base class for all errors that should stop an rtapi invocation."""


class ConfigError(RtapiError):
    """Missing, contradictory or malformed user input."""


class EngineError(RtapiError):
    """The attack engine could not start a run."""


class RenderError(RtapiError):
    """Plot or document generation failed."""


class ForwardError(RtapiError):
    """An event could not be delivered to the forwarding sink."""
