from typing import Any, Callable, Dict, List

# Tool registry - the fixed set of tools this server exposes
TOOLS: Dict[str, Dict[str, Any]] = {
    'list_indian_stores': {
        'description': 'List popular Indian online stores',
        'schema': {
            'type': 'object',
            'properties': {}
        }
    }
}

INDIAN_STORES: List[str] = [
    'Flipkart',
    'Amazon India',
    'Reliance Digital',
    'Myntra',
    'Snapdeal',
    'Tata CLiQ',
]


def list_indian_stores(arguments: Dict[str, Any]) -> str:
    """Return the store list. Arguments are accepted but do not change the output."""
    return ', '.join(INDIAN_STORES)


TOOL_HANDLERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    'list_indian_stores': list_indian_stores,
}


def tool_descriptors() -> List[Dict[str, Any]]:
    """Build the tools/list payload from the registry"""
    tools: List[Dict[str, Any]] = []
    for name, info in TOOLS.items():
        tools.append({
            'name': name,
            'description': info['description'],
            # Copy so callers can't mutate the registry through a response
            'inputSchema': dict(info['schema'], properties=dict(info['schema']['properties']))
        })
    return tools


def text_result(text: str, is_error: bool = False) -> Dict[str, Any]:
    return {
        'content': [{'type': 'text', 'text': text}],
        'isError': is_error
    }
