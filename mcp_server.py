import logging
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import MethodNotAllowed

from mcp_config import Settings, configure_logging, load_settings
from mcp_protocol import Dispatcher, SERVER_NAME

logger: logging.Logger = logging.getLogger(__name__)


def oauth_metadata(settings: Settings) -> Dict[str, Any]:
    """Static OAuth authorization server discovery document"""
    oauth = settings.oauth
    return {
        'issuer': oauth.issuer,
        'authorization_endpoint': oauth.authorization_endpoint,
        'token_endpoint': oauth.token_endpoint,
        'jwks_uri': oauth.jwks_uri,
        'response_types_supported': ['code'],
        'grant_types_supported': ['authorization_code'],
        'scopes_supported': list(oauth.scopes)
    }


def create_app(settings: Optional[Settings] = None,
               dispatcher: Optional[Dispatcher] = None) -> Flask:
    """Create the Flask application serving the MCP endpoint"""
    settings = settings or load_settings()
    dispatcher = dispatcher or Dispatcher()

    # Create Flask application instance
    app = Flask(__name__)
    app.config['SETTINGS'] = settings
    app.extensions['mcp_dispatcher'] = dispatcher

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        response.headers['Access-Control-Allow-Origin'] = settings.cors_allow_origin
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization, Mcp-Session-Id'
        return response

    @app.route('/', methods=['GET'])
    def root() -> Response:
        return Response(f'hey there 👋 this is {SERVER_NAME}', mimetype='text/plain')

    @app.route('/health', methods=['GET'])
    def health_check() -> Response:
        """Health check endpoint - allows clients to verify server is running"""
        return jsonify({'status': 'ok'})

    @app.route('/.well-known/oauth-authorization-server', methods=['GET'])
    def oauth_authorization_server() -> Response:
        return jsonify(oauth_metadata(settings))

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(e: MethodNotAllowed) -> Response:
        # Any verb other than POST/OPTIONS on the MCP endpoint, including unknown ones
        if request.path == '/mcp':
            return Response('POST only', status=405, mimetype='text/plain')
        return e.get_response()

    @app.route('/mcp', methods=['POST', 'OPTIONS'])
    def mcp_handler() -> Response:
        """Main MCP endpoint handling JSON-RPC 2.0 requests"""
        if request.method == 'OPTIONS':
            # CORS preflight
            return Response(status=204)

        body: Optional[bytes] = dispatcher.handle(request.get_data())
        if body is None:
            # Notifications get no body at all
            return Response(status=202)
        return Response(body, status=200, mimetype='application/json')

    return app


def main() -> None:
    settings = load_settings()
    configure_logging(settings)

    app = create_app(settings)
    logger.info(f"{SERVER_NAME} starting on {settings.host}:{settings.port}")
    # Start the Flask server; requests are handled on worker threads
    app.run(host=settings.host, port=settings.port, threaded=True)


if __name__ == '__main__':
    main()
