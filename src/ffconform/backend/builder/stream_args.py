"""Stream argument helpers."""

MAP_FLAG = "-map"  #: Flag to map a stream.


def spec(kind: str, index: int | None = 0) -> str:
    """Return an output stream specifier such as ``v:0`` or ``a``."""
    return kind if index is None else f"{kind}:{index}"


def input_spec(index: int, *, input_index: int = 0) -> str:
    """Return an absolute input stream selector like ``0:3``."""
    return f"{input_index}:{index}"


def map_stream(index: int, *, input_index: int = 0) -> tuple[str, ...]:
    """Return ``-map`` arguments selecting input stream ``index``."""
    return (MAP_FLAG, input_spec(index, input_index=input_index))


def option(name: str, kind: str, index: int | None = 0) -> str:
    """Return ``-name:kind:index`` for a per-stream option."""
    return f"-{name}:{spec(kind, index)}"


def codec_flag(kind: str, index: int | None = None) -> tuple[str, ...]:
    """Return codec flag for a stream type."""
    return (option("c", kind, index),)


def bitrate_flag(kind: str, index: int | None = None) -> tuple[str, ...]:
    """Return bitrate flag for a stream type."""
    return (option("b", kind, index),)


def tag_flag(kind: str, index: int | None = None) -> tuple[str, ...]:
    """Return codec tag flag for a stream type."""
    return (option("tag", kind, index),)
