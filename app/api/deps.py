from fastapi import Request

from app.services.live_relay import LiveRelay


def get_relay(request: Request) -> LiveRelay:
    return request.app.state.relay
