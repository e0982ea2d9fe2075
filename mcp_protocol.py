"""MCP request dispatcher.

Decodes JSON-RPC envelopes, enforces the ``initialize`` handshake before the
tool methods, routes each method to its handler and wraps the outcome in a
response envelope. ``Dispatcher.handle`` is the only entry point a transport
needs: raw request bytes in, raw response bytes (or None) out.
"""

import logging
import threading
from typing import Any, Callable, Dict, NamedTuple, Optional, Union

import mcp_envelope
from mcp_envelope import Request, Response, RPCError
from mcp_tools import TOOL_HANDLERS, text_result, tool_descriptors

logger: logging.Logger = logging.getLogger(__name__)

PROTOCOL_VERSION: str = '2024-11-05'
SERVER_NAME: str = 'store-mcp-server'
SERVER_VERSION: str = '0.002'


class SessionState:
    """Whether the initialize handshake has completed.

    Starts out False, flips to True on the first successful handshake and
    never goes back.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ready = False

    def is_ready(self) -> bool:
        with self._lock:
            return self._ready

    def mark_ready(self) -> None:
        with self._lock:
            self._ready = True


Handler = Callable[['Dispatcher', Any], Any]


class Route(NamedTuple):
    handler: Handler
    gated: bool = False
    notification: bool = False


def _require_object(params: Any, what: str) -> Dict[str, Any]:
    if not isinstance(params, dict):
        raise mcp_envelope.invalid_params(f'{what} params must be an object')
    return params


def _require_str(obj: Dict[str, Any], key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise mcp_envelope.invalid_params(f'{where}{key} must be a string')
    return value


def handle_initialize(dispatcher: 'Dispatcher', params: Any) -> Dict[str, Any]:
    """Validate the client's handshake and mark the session ready"""
    params = _require_object(params, 'initialize')
    requested_version = _require_str(params, 'protocolVersion', '')

    capabilities = params.get('capabilities', {})
    if capabilities is not None and not isinstance(capabilities, dict):
        raise mcp_envelope.invalid_params('capabilities must be an object')

    client_info = params.get('clientInfo')
    if not isinstance(client_info, dict):
        raise mcp_envelope.invalid_params('clientInfo must be an object')
    client_name = _require_str(client_info, 'name', 'clientInfo.')
    client_version = _require_str(client_info, 'version', 'clientInfo.')

    dispatcher.session.mark_ready()
    logger.info(f"Initialized for client {client_name!r} v{client_version!r} "
                f"(requested protocol {requested_version}, serving {PROTOCOL_VERSION})")

    # Always answer with our own version, no negotiation
    return {
        'protocolVersion': PROTOCOL_VERSION,
        'capabilities': {'tools': {'listChanged': False}},
        'serverInfo': {'name': SERVER_NAME, 'version': SERVER_VERSION}
    }


def handle_initialized(dispatcher: 'Dispatcher', params: Any) -> None:
    logger.info("Client confirmed initialization")


def handle_ping(dispatcher: 'Dispatcher', params: Any) -> Dict[str, Any]:
    return {}


def handle_tools_list(dispatcher: 'Dispatcher', params: Any) -> Dict[str, Any]:
    return {'tools': tool_descriptors()}


def handle_tools_call(dispatcher: 'Dispatcher', params: Any) -> Dict[str, Any]:
    """Run a tool from the fixed table by name"""
    params = _require_object(params, 'tools/call')
    name = _require_str(params, 'name', '')

    arguments = params.get('arguments')
    if arguments is None:
        arguments = {}
    elif not isinstance(arguments, dict):
        raise mcp_envelope.invalid_params('arguments must be an object')

    tool = TOOL_HANDLERS.get(name)
    if tool is None:
        logger.warning(f"Unknown tool requested: {name!r}")
        raise mcp_envelope.unknown_tool(name)

    return text_result(tool(arguments))


METHODS: Dict[str, Route] = {
    'initialize': Route(handle_initialize),
    'notifications/initialized': Route(handle_initialized, notification=True),
    'tools/list': Route(handle_tools_list, gated=True),
    'tools/call': Route(handle_tools_call, gated=True),
    'ping': Route(handle_ping),
}


class Dispatcher:
    """Routes decoded requests to handlers for one server instance"""

    def __init__(self, session: Optional[SessionState] = None,
                 methods: Optional[Dict[str, Route]] = None) -> None:
        self.session = session if session is not None else SessionState()
        self.methods = methods if methods is not None else METHODS

    def route(self, method: str) -> Optional[Route]:
        return self.methods.get(method)

    def dispatch(self, request: Request) -> Optional[Response]:
        """Run one request; returns None for notifications"""
        route = self.route(request.method)
        if route is None:
            logger.warning(f"Method not found: {request.method!r}")
            return Response.failure(request.id, mcp_envelope.method_not_found(request.method))

        try:
            if route.gated and not self.session.is_ready():
                logger.warning(f"Rejected {request.method}: server not initialized")
                raise mcp_envelope.not_initialized()
            result = route.handler(self, request.params)
        except RPCError as e:
            if route.notification:
                return None
            return Response.failure(request.id, e)
        except Exception:
            logger.exception(f"Unhandled error in {request.method}")
            if route.notification:
                return None
            return Response.failure(request.id, mcp_envelope.internal_error())

        if route.notification:
            return None
        return Response.success(request.id, result)

    def handle(self, raw: Union[bytes, str]) -> Optional[bytes]:
        """Decode, dispatch and encode a single request"""
        try:
            request = mcp_envelope.decode(raw)
        except mcp_envelope.ParseError as e:
            logger.warning(f"Parse error: {e}")
            return mcp_envelope.encode(mcp_envelope.parse_error_response())

        response = self.dispatch(request)
        if response is None:
            return None
        try:
            return mcp_envelope.encode(response)
        except (ValueError, RecursionError):
            # The echoed id itself may be what can't be written back
            logger.exception(f"Could not encode response to {request.method!r}")
            return mcp_envelope.encode(Response.failure(None, mcp_envelope.internal_error()))
