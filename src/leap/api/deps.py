"""Shared route dependencies.

Learn: The realtime hub is built by create_app() and parked on
app.state, so each app instance (and each test) gets its own registries.
"""

from fastapi import Request

from leap.realtime.hub import RealtimeHub


def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub
