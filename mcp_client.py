import requests
from typing import Dict, Any, List, Optional

from mcp_protocol import PROTOCOL_VERSION

# Global variables to maintain state
server_url = ""
session = None
initialized = False
request_id = 1


def init_client(url: str):
    global server_url, session, initialized, request_id
    server_url = url.rstrip('/')
    session = requests.Session()
    initialized = False
    request_id = 1


def _post(payload: Dict) -> requests.Response:
    response = session.post(
        f"{server_url}/mcp",
        json=payload,
        headers={'Content-Type': 'application/json'},
        timeout=10
    )
    response.raise_for_status()
    return response


def send_request(method: str, params: Dict = None) -> Optional[Dict]:
    global request_id

    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "id": request_id
    }
    if params is not None:
        payload["params"] = params
    request_id += 1
    try:
        return _post(payload).json()
    except (requests.exceptions.RequestException, ValueError) as e:
        print(f"Request failed: {e}")
        return None


def send_notification(method: str, params: Dict = None) -> bool:
    """Send a notification; the server answers with an empty body"""
    payload = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        payload["params"] = params
    try:
        _post(payload)
        return True
    except requests.exceptions.RequestException as e:
        print(f"Notification failed: {e}")
        return False


def initialize() -> bool:
    """Initialize MCP connection with handshake"""
    global initialized

    # Send initialization request to server
    response = send_request("initialize", {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {},
        "clientInfo": {
            "name": "store-mcp-client",
            "version": "1.0.0"
        }
    })

    # Check if initialization was successful
    if response and 'result' in response:
        initialized = True
        server_info = response['result']['serverInfo']
        print(f"Connected to {server_info['name']} v{server_info['version']}")
        send_notification("notifications/initialized")
        return True
    elif response and 'error' in response:
        print(f"Initialization failed: {response['error']['message']}")
    return False


def list_tools() -> List[Dict]:
    """List available tools from the server"""
    if not initialized:
        print("Error: Connection not initialized")
        return []

    response = send_request("tools/list")

    if response and 'result' in response:
        return response['result'].get('tools', [])
    elif response and 'error' in response:
        print(f"Error listing tools: {response['error']['message']}")
    return []


def call_tool(tool_name: str, arguments: Dict = None) -> Optional[Any]:
    """Call a tool with given arguments"""
    if not initialized:
        print("Error: Connection not initialized")
        return None

    response = send_request("tools/call", {
        "name": tool_name,
        "arguments": arguments or {}
    })

    if response and 'result' in response:
        return response['result']
    elif response and 'error' in response:
        print(f"Error calling tool: {response['error']['message']}")
    return None


def ping() -> bool:
    response = send_request("ping")
    return bool(response) and response.get('result') == {}


def health_check() -> bool:
    """Check if server is healthy and responding"""
    try:
        response = session.get(f"{server_url}/health", timeout=5)
        return response.status_code == 200
    except requests.exceptions.RequestException:
        return False


def main():
    """Connect to a running server, list its tools and call each one"""
    print("=== Store MCP Client ===")

    init_client("http://127.0.0.1:8080")

    # Check server health first
    if not health_check():
        print("Server is not responding. Make sure the MCP server is running.")
        return

    if not initialize():
        print("Failed to initialize MCP connection")
        return

    tools = list_tools()
    print("\nAvailable Tools:")
    for tool in tools:
        print(f"- {tool['name']}: {tool['description']}")

    for tool in tools:
        result = call_tool(tool['name'])
        if result:
            print(f"\n{tool['name']}: {result['content'][0]['text']}")
        else:
            print(f"\nFailed to get result from {tool['name']}")


if __name__ == '__main__':
    main()
