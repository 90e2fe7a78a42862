from __future__ import annotations

from fastapi.applications import FastAPI

from relay.services.broker import BrokerClient
from relay.services.state import RelayState


def relay_state(app: FastAPI) -> RelayState:
    state: RelayState | None = getattr(app.state, "relay_state", None)
    if state is None:
        state = RelayState()
        app.state.relay_state = state
    return state


def broker_client(app: FastAPI) -> BrokerClient | None:
    return getattr(app.state, "broker", None)
