"""YAML boundary: the codec protocol, its PyYAML implementation, and metadata lookahead"""

import logging
from typing import Any, Optional, Protocol

import yaml

from mdrf.core.lines import LineCursor, fence_tag, read_fenced_block
from mdrf.errors import DecodeError


logger = logging.getLogger(__name__)


class YamlCodec(Protocol):
    """Text <-> value conversion used by the parser and generator.

    Alternate encoders only need these two operations.
    """

    def decode(self, text: str) -> Any:
        ...

    def encode(self, value: Any, indent: int = 2) -> str:
        ...


class _TextTimestampLoader(yaml.SafeLoader):
    """SafeLoader that leaves ISO timestamps as strings."""


_TextTimestampLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != 'tag:yaml.org,2002:timestamp']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class PyYamlCodec:
    """Default codec backed by yaml.safe_load / yaml.safe_dump."""

    def decode(self, text: str) -> Any:
        try:
            return yaml.load(text, Loader=_TextTimestampLoader)
        except yaml.YAMLError as e:
            raise DecodeError(str(e)) from e

    def encode(self, value: Any, indent: int = 2) -> str:
        return yaml.safe_dump(
            value, indent=indent, sort_keys=False, allow_unicode=True, default_flow_style=False,
        )


DEFAULT_CODEC = PyYamlCodec()


def decode_mapping(text: str, codec: YamlCodec = DEFAULT_CODEC) -> dict[str, Any]:
    """Decode text that must hold a YAML mapping."""
    value = codec.decode(text)
    if not isinstance(value, dict):
        raise DecodeError(f"expected a mapping, got {type(value).__name__}")
    return value


def read_optional_metadata(cursor: LineCursor, key: str, codec: YamlCodec = DEFAULT_CODEC) -> Optional[Any]:
    """Consume a following ```yaml block and return its value under key.

    Returns None without consuming anything when the next line does not open
    a yaml-tagged fence.
    """
    tag = fence_tag(cursor.peek())
    if tag is None or 'yaml' not in tag:
        return None

    block = read_fenced_block(cursor)
    try:
        data = codec.decode(block.content)
    except DecodeError as e:
        raise cursor.error(f"Failed to parse YAML metadata block for key '{key}': {e.reason}", block.line) from e
    if not isinstance(data, dict) or key not in data:
        raise cursor.error(f"YAML block found, but missing the required top-level key '{key}'.", block.line)

    logger.debug("Read '%s' metadata block at line %d", key, block.line)
    return data[key]
