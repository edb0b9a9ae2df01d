"""Telemetry helpers and metrics."""

from .metrics import increment_token_refresh, observe_request, observe_waveform

__all__ = ["increment_token_refresh", "observe_request", "observe_waveform"]
