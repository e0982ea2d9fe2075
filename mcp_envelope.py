import json
import math
from typing import Any, Dict, Optional, Union

JSONRPC_VERSION: str = '2.0'

# Error codes
PARSE_ERROR: int = -32700
METHOD_NOT_FOUND: int = -32601
INVALID_PARAMS: int = -32602
INTERNAL_ERROR: int = -32603
NOT_INITIALIZED: int = -32002


class _Absent:
    """Marks an envelope field that was omitted, as opposed to sent as null"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'ABSENT'

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


class ParseError(Exception):
    """Raised by decode() when the envelope itself cannot be read"""


class RPCError(Exception):
    """Failure raised inside a handler and turned into an error envelope"""

    def __init__(self, code: int, message: str, data: Any = ABSENT):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {'code': self.code, 'message': self.message}
        if self.data is not ABSENT:
            error['data'] = self.data
        return error

    def __repr__(self) -> str:
        return f'RPCError(code={self.code}, message={self.message!r}, data={self.data!r})'


def method_not_found(method: str) -> RPCError:
    return RPCError(METHOD_NOT_FOUND, 'Method not found', method)


def unknown_tool(name: str) -> RPCError:
    return RPCError(METHOD_NOT_FOUND, 'Unknown tool', name)


def invalid_params(detail: str) -> RPCError:
    return RPCError(INVALID_PARAMS, 'Invalid params', detail)


def not_initialized() -> RPCError:
    return RPCError(NOT_INITIALIZED, 'Server not initialized')


def internal_error() -> RPCError:
    return RPCError(INTERNAL_ERROR, 'Internal error')


class Request:
    """Decoded request envelope.

    ``id`` and ``params`` hold ABSENT when the client left them out. ``params``
    is kept as the raw decoded JSON value; each handler checks its own shape.
    """

    __slots__ = ('jsonrpc', 'id', 'method', 'params')

    def __init__(self, method: str, id: Any = ABSENT, params: Any = ABSENT,
                 jsonrpc: Any = JSONRPC_VERSION):
        self.jsonrpc = jsonrpc
        self.id = id
        self.method = method
        self.params = params

    @property
    def is_notification(self) -> bool:
        return self.id is ABSENT

    def __repr__(self) -> str:
        return f'Request(method={self.method!r}, id={self.id!r}, params={self.params!r})'


class Response:
    """Response envelope carrying exactly one of result or error"""

    __slots__ = ('id', 'result', 'error')

    def __init__(self, id: Any, result: Any = ABSENT, error: Optional[RPCError] = None):
        if (result is ABSENT) == (error is None):
            raise ValueError('a response needs exactly one of result or error')
        self.id = id
        self.result = result
        self.error = error

    @classmethod
    def success(cls, id: Any, result: Any) -> 'Response':
        return cls(id, result=result)

    @classmethod
    def failure(cls, id: Any, error: RPCError) -> 'Response':
        return cls(id, error=error)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'jsonrpc': JSONRPC_VERSION}
        # An omitted request id stays omitted
        if self.id is not ABSENT:
            payload['id'] = self.id
        if self.error is not None:
            payload['error'] = self.error.to_dict()
        else:
            payload['result'] = self.result
        return payload


def _reject_constant(name: str) -> Any:
    raise ValueError(f'non-standard constant {name}')


def _finite_float(text: str) -> float:
    value = float(text)
    # 1e400 overflows to inf, which has no JSON form
    if math.isinf(value):
        raise ValueError(f'number out of range: {text}')
    return value


def decode(raw: Union[bytes, str]) -> Request:
    """Parse raw request bytes into a Request, raising ParseError if malformed"""
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode('utf-8')
        message = json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, RecursionError) as e:
        raise ParseError(f'invalid JSON: {e}') from e

    if not isinstance(message, dict):
        # Batches are not supported, so arrays are malformed too
        raise ParseError(f'expected a JSON object, got {type(message).__name__}')

    method = message.get('method', '')
    if not isinstance(method, str):
        raise ParseError('method must be a string')

    return Request(
        method=method,
        id=message.get('id', ABSENT),
        params=message.get('params', ABSENT),
        jsonrpc=message.get('jsonrpc', ABSENT),
    )


def encode(response: Response) -> bytes:
    """Serialize a response as strict ASCII JSON; lone surrogates come out escaped"""
    return json.dumps(response.to_dict(), allow_nan=False, separators=(',', ':')).encode('ascii')


def parse_error_response(detail: Optional[str] = None) -> Response:
    """Error envelope for input whose id could not be recovered"""
    error = RPCError(PARSE_ERROR, 'Parse error', detail if detail is not None else ABSENT)
    return Response.failure(None, error)
