"""
Display-name helpers for metric keys, dimensions and entity types.
"""

import re

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def format_metric_name(metric: str) -> str:
    """server.tick_time -> Server Tick Time"""
    words = []
    for segment in metric.split("."):
        words.extend(word for word in segment.split("_") if word)
    return " ".join(word[:1].upper() + word[1:] for word in words)


def format_dimension_name(dimension: str) -> str:
    """minecraft.overworld (or minecraft:overworld) -> Overworld"""
    parts = dimension.replace(":", ".").split(".")
    if len(parts) < 2:
        return dimension
    name = parts[-1].replace("_", " ")
    return name[:1].upper() + name[1:]


def _title_words(name: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in name.split("_") if word)


def format_type_name(type_name: str) -> str:
    """Readable label for an entity or block-entity type.

    Examples:
        minecraft:cow -> Cow
        minecraft.magma_cube -> Magma Cube
        net.minecraft.block.entity.SignBlockEntity -> Sign
        BlockEntityType@1a2b3c4d -> Entity-1a2b
    """
    if "@" in type_name:
        prefix, _, suffix = type_name.partition("@")
        readable = prefix.split(".")[-1].replace("BlockEntityType", "")
        return readable or f"Entity-{suffix[:4]}"

    last = type_name.replace(":", ".").split(".")[-1]
    if last[:1].isupper():
        if last.endswith("BlockEntity") and len(last) > len("BlockEntity"):
            last = last[: -len("BlockEntity")]
        return " ".join(_CAMEL_BOUNDARY.split(last))
    return _title_words(last)
