from __future__ import annotations

import json
import re
from typing import Any, Optional

import yaml

from sil.sil_ast import Node
from sil.sil_transformer import SilTransformer


# --------------------------
# Helpers
# --------------------------

def _norm_text(data: bytes | bytearray | str, *, encoding: Optional[str] = None) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode(encoding or 'utf-8', errors='replace')
    return data


def _encoding_from_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    m = re.search(r'charset\s*=\s*([^\s;]+)', content_type, re.IGNORECASE)
    if m:
        return m.group(1).strip('"').strip("'")
    return None


def detect_format(content_type: Optional[str] = None,
                  data_hint: Optional[str] = None,
                  filename: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json' or 'yaml'.
    Uses Content-Type first, then the file extension, then simple data sniffing.
    """
    ct = (content_type or "").lower()
    if 'json' in ct:
        return 'json'
    if 'yaml' in ct:
        return 'yaml'

    if filename:
        lowered = filename.lower()
        if lowered.endswith('.json'):
            return 'json'
        if lowered.endswith(('.yaml', '.yml')):
            return 'yaml'

    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
        if s:
            return 'yaml'
    return None


# --------------------------
# Public API
# --------------------------

def deserialize(data: bytes | bytearray | str,
                *,
                content_type: Optional[str] = None,
                fmt: Optional[str] = None) -> Any:
    """
    Convert document text (bytes or string) into plain dicts and lists.
    Supported fmt: 'json', 'yaml'. If fmt is None, uses content_type, then sniffing.
    """
    text = _norm_text(data, encoding=_encoding_from_content_type(content_type))
    f = fmt or detect_format(content_type, text)
    if f == 'json':
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Mislabeled YAML; YAML is a superset of JSON anyway
            return yaml.safe_load(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported document format: {f!r}")


def serialize(value: Any, *, fmt: str, pretty: bool = True) -> str:
    """Convert plain dicts and lists (or a parse tree) into JSON or YAML text."""
    if isinstance(value, Node):
        value = SilTransformer().to_document(value)
    f = (fmt or '').lower()
    if f == 'json':
        return json.dumps(value, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(value, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def load_program(data: bytes | bytearray | str,
                 *,
                 content_type: Optional[str] = None,
                 fmt: Optional[str] = None) -> Node:
    """Parse an AST document and build the parse tree it describes."""
    return SilTransformer().transform(deserialize(data, content_type=content_type, fmt=fmt))


__all__ = [
    "deserialize",
    "serialize",
    "detect_format",
    "load_program",
]
