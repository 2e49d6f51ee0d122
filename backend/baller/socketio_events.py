from flask import current_app, request
from baller import socketio
from baller.auth import verify_token
from baller.services.matchmaking import MatchmakingService
from baller.services.matchmaking.relay import MATCH_CHAT, MATCH_END, MATCH_GOAL, MATCH_STATE
from typing import Any, Dict


def create_matchmaking_service(flask_app) -> MatchmakingService:
    """Build the per-app matchmaking service, delivering through Socket.IO."""
    default_namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')

    def deliver(conn, event: str, payload: Any = None) -> None:
        namespace = conn.namespace or default_namespace
        # Use socketio.emit since delivery targets a socket other than the sender
        if payload is None:
            socketio.emit(event, to=conn.id, namespace=namespace)
        else:
            socketio.emit(event, payload, to=conn.id, namespace=namespace)

    return MatchmakingService(
        verify_token=verify_token,
        deliver=deliver,
        logger=flask_app.logger,
        chat_max_length=int(flask_app.config.get('CHAT_MAX_LENGTH', 120)),
        guest_suffix_length=int(flask_app.config.get('GUEST_SUFFIX_LENGTH', 4)),
    )


def _service() -> MatchmakingService:
    return current_app.extensions['matchmaking']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _as_dict(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def handle_connect(auth=None):
    _service().connect(_get_sid(), namespace=request.namespace)  # type: ignore


def handle_disconnect(reason=None):
    _service().disconnect(_get_sid())


def handle_queue_join(data=None):
    data = _as_dict(data)
    _service().join(_get_sid(), data.get('token'), data.get('teamData'))


def handle_queue_leave(data=None):
    _service().leave(_get_sid())


def handle_match_goal(data=None):
    _service().relay_event(_get_sid(), MATCH_GOAL, data)


def handle_match_state(data=None):
    _service().relay_event(_get_sid(), MATCH_STATE, data)


def handle_match_end(data=None):
    _service().relay_event(_get_sid(), MATCH_END, data)


def handle_match_chat(data=None):
    _service().relay_event(_get_sid(), MATCH_CHAT, _as_dict(data))


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on the matchmaking namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('queue:join', handle_queue_join, namespace=namespace)
    socketio.on_event('queue:leave', handle_queue_leave, namespace=namespace)
    socketio.on_event('match:goal', handle_match_goal, namespace=namespace)
    socketio.on_event('match:state', handle_match_state, namespace=namespace)
    socketio.on_event('match:end', handle_match_end, namespace=namespace)
    socketio.on_event('match:chat', handle_match_chat, namespace=namespace)
