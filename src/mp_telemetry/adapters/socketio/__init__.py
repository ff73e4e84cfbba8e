"""Socket.IO adapter – event handler tracing (python-socketio)."""
from mp_telemetry.adapters.socketio.hooks import SocketIOTraceHook

__all__ = ["SocketIOTraceHook"]
