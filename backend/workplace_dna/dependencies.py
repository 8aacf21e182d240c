from fastapi import Request

from .realtime import RealtimeManager


def get_realtime(request: Request) -> RealtimeManager:
    return request.app.state.realtime
