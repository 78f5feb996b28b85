"""
Best-effort parsing of compound metric keys.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..patterns import (
    ACTIVE_CHUNK_PATTERN,
    CHUNK_BLOCK_ENTITIES_PATTERN,
    CHUNKS_LOADED_PATTERN,
    HOTSPOT_PATTERN,
    INTEGER_PATTERN,
    TYPE_KEY_PREFIXES,
)

# Shapes recognised by KeyParser
KIND_CHUNKS_LOADED = "chunks_loaded"
KIND_ACTIVE_CHUNK = "active_chunk"
KIND_HOTSPOT = "hotspot"
KIND_CHUNK_BLOCK_ENTITIES = "chunk_block_entities"
KIND_ENTITY_TYPE = "entity_type"
KIND_BLOCK_ENTITY_TYPE = "block_entity_type"

_TYPE_KINDS = {
    "entities": KIND_ENTITY_TYPE,
    "block_entities": KIND_BLOCK_ENTITY_TYPE,
}


@dataclass(frozen=True)
class ParsedKey:
    """Structured decomposition of a metric key.

    Fields other than ``namespace`` are None when they do not apply.

    Attributes:
        namespace: First dot-segment (e.g. "world", "entities").
        dimension: Dimension identifier (e.g. "minecraft.overworld").
        coordinate: Chunk coordinate as (x, z).
        subtype: Free-form suffix such as an entity type.
        kind: Which key shape matched, or None.
    """

    namespace: str
    dimension: Optional[str] = None
    coordinate: Optional[Tuple[int, int]] = None
    subtype: Optional[str] = None
    kind: Optional[str] = None

    @property
    def namespaced_id(self) -> Optional[str]:
        """Recover ``minecraft:cow`` from a ``minecraft.cow`` subtype.

        Only two-part subtypes are converted; class-like paths are returned
        unchanged.
        """
        if self.subtype is None:
            return None
        parts = self.subtype.split(".")
        if len(parts) == 2:
            return ":".join(parts)
        return self.subtype

    @property
    def type_token(self) -> Optional[str]:
        """Final path segment of the subtype (``cow``, ``SignBlockEntity``)."""
        if self.subtype is None:
            return None
        return self.subtype.replace(":", ".").split(".")[-1]


def _parse_int(token: Optional[str]) -> Optional[int]:
    if token is None or not INTEGER_PATTERN.match(token):
        return None
    return int(token)


def _coordinate(x_token: Optional[str], z_token: Optional[str]) -> Optional[Tuple[int, int]]:
    x = _parse_int(x_token)
    z = _parse_int(z_token)
    if x is None or z is None:
        return None
    return (x, z)


class KeyParser:
    """Parses metric keys into ParsedKey values. Never raises."""

    def parse(self, key: str) -> ParsedKey:
        """Decompose ``key``; unknown shapes yield only a namespace."""
        match = CHUNKS_LOADED_PATTERN.match(key)
        if match:
            return ParsedKey(
                namespace=match.group("namespace"),
                dimension=match.group("dimension"),
                kind=KIND_CHUNKS_LOADED,
            )

        match = ACTIVE_CHUNK_PATTERN.match(key)
        if match:
            return ParsedKey(
                namespace=match.group("namespace"),
                dimension=match.group("dimension"),
                coordinate=_coordinate(match.group("x"), match.group("z")),
                kind=KIND_ACTIVE_CHUNK,
            )

        match = HOTSPOT_PATTERN.match(key)
        if match:
            return ParsedKey(
                namespace=match.group("namespace"),
                dimension=match.group("dimension"),
                coordinate=_coordinate(match.group("x"), match.group("z")),
                subtype=match.group("rest"),
                kind=KIND_HOTSPOT,
            )

        match = CHUNK_BLOCK_ENTITIES_PATTERN.match(key)
        if match:
            return ParsedKey(
                namespace=match.group("namespace"),
                dimension=match.group("dimension"),
                coordinate=_coordinate(match.group("x"), match.group("z")),
                kind=KIND_CHUNK_BLOCK_ENTITIES,
            )

        for prefix, namespace in TYPE_KEY_PREFIXES.items():
            if key.startswith(prefix) and len(key) > len(prefix):
                return ParsedKey(
                    namespace=namespace,
                    subtype=key[len(prefix):],
                    kind=_TYPE_KINDS[namespace],
                )

        return ParsedKey(namespace=key.split(".", 1)[0])


_default_parser = KeyParser()


def parse_key(key: str) -> ParsedKey:
    """Parse ``key`` with a shared KeyParser."""
    return _default_parser.parse(key)
