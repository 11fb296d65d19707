"""
Filesystem image encoding

The whole tree is written as one JSON document:

    {"version": 2, "root": <node>}

    file:      {"name", "type": "file", "lastModified", "content", "encoding"}
    directory: {"name", "type": "directory", "lastModified",
                "children": [[name, <node>], ...]}

Children are an ordered list of pairs so iteration order survives the round
trip. File content is stored as text when it is valid UTF-8 and as base64
otherwise.
"""

import json
import base64
import binascii
from typing import Any, Dict, Tuple

from ..exceptions import CorruptImage
from .nodes import FILE, DIRECTORY, FileNode, DirectoryNode, NodeArena

IMAGE_VERSION = 2


def _encode_content(content: bytes) -> Tuple[str, str]:
    try:
        return content.decode('utf-8'), 'utf-8'
    except UnicodeDecodeError:
        return base64.b64encode(content).decode('ascii'), 'base64'


def _decode_content(text: str, encoding: str) -> bytes:
    if not isinstance(text, str):
        raise CorruptImage("File content must be a string")
    if encoding == 'utf-8':
        return text.encode('utf-8')
    if encoding == 'base64':
        try:
            return base64.b64decode(text.encode('ascii'), validate=True)
        except (binascii.Error, ValueError) as e:
            raise CorruptImage(f"Invalid base64 file content: {e}") from e
    raise CorruptImage(f"Unknown content encoding: {encoding}")


def serialize_node(arena: NodeArena, handle: int) -> Dict[str, Any]:
    """Encode the subtree rooted at handle"""
    node = arena.get(handle)
    if isinstance(node, FileNode):
        content, encoding = _encode_content(node.content)
        return {
            'name': node.name,
            'type': FILE,
            'lastModified': node.last_modified,
            'content': content,
            'encoding': encoding,
        }
    return {
        'name': node.name,
        'type': DIRECTORY,
        'lastModified': node.last_modified,
        'children': [[name, serialize_node(arena, child)]
                     for name, child in node.children()],
    }


def deserialize_node(arena: NodeArena, data: Any) -> int:
    """Rebuild a subtree into the arena and return its handle"""
    if not isinstance(data, dict):
        raise CorruptImage(f"Node must be an object, got {type(data).__name__}")

    name = data.get('name')
    node_type = data.get('type')
    last_modified = data.get('lastModified', 0)
    if not isinstance(name, str):
        raise CorruptImage("Node is missing its name")
    if not isinstance(last_modified, (int, float)):
        raise CorruptImage(f"Invalid timestamp on node {name!r}")

    if node_type == FILE:
        content = _decode_content(data.get('content', ''), data.get('encoding', 'utf-8'))
        return arena.alloc(FileNode(name, content, last_modified))

    if node_type != DIRECTORY:
        raise CorruptImage(f"Unknown node type {node_type!r} for {name!r}")

    directory = DirectoryNode(name, last_modified)
    handle = arena.alloc(directory)
    children = data.get('children') or []
    if not isinstance(children, list):
        raise CorruptImage(f"Children of {name!r} must be a list of pairs")
    for pair in children:
        if not isinstance(pair, list) or len(pair) != 2 or not isinstance(pair[0], str):
            raise CorruptImage(f"Malformed child entry in {name!r}")
        key, child_data = pair
        if directory.child(key) is not None:
            raise CorruptImage(f"Duplicate child {key!r} in {name!r}")
        directory.add_child(key, deserialize_node(arena, child_data))
    return handle


def dumps(arena: NodeArena, root: int) -> str:
    return json.dumps({'version': IMAGE_VERSION, 'root': serialize_node(arena, root)})


def loads(blob: str) -> Tuple[NodeArena, int]:
    """Decode an image into a fresh arena; raises CorruptImage"""
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise CorruptImage(f"Filesystem image is not valid JSON: {e}") from e
    if not isinstance(data, dict) or 'root' not in data:
        raise CorruptImage("Filesystem image has no root")
    if data.get('version', IMAGE_VERSION) != IMAGE_VERSION:
        raise CorruptImage(f"Unsupported image version: {data.get('version')}")

    arena = NodeArena()
    root = deserialize_node(arena, data['root'])
    if not isinstance(arena.get(root), DirectoryNode):
        raise CorruptImage("Filesystem root must be a directory")
    return arena, root
