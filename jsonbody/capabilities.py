"""Marker capabilities for stream-like types.

Types the framework moves as raw bodies are tagged here once, instead of
keeping lists of base classes to test on every eligibility check.
"""

import abc
import enum
import functools
import io
import typing

import aiohttp
import aiohttp.web


class Capability(enum.Enum):
    INPUT_STREAM = 'input-stream'
    READER = 'reader'
    OUTPUT_STREAM = 'output-stream'
    WRITER = 'writer'
    STREAMING_OUTPUT = 'streaming-output'
    RESPONSE = 'response'


class StreamingOutput(abc.ABC):
    """A body that writes itself straight to the output stream."""

    @abc.abstractmethod
    def write(self, stream: typing.BinaryIO) -> None:
        raise NotImplementedError()


_registry: typing.Dict[type, typing.FrozenSet[Capability]] = {
    io.RawIOBase: frozenset({Capability.INPUT_STREAM, Capability.OUTPUT_STREAM}),
    io.BufferedIOBase: frozenset({Capability.INPUT_STREAM, Capability.OUTPUT_STREAM}),
    io.TextIOBase: frozenset({Capability.READER, Capability.WRITER}),
    # BinaryIO, TextIO and IO[...] all resolve to IO
    typing.IO: frozenset({Capability.INPUT_STREAM, Capability.OUTPUT_STREAM}),
    typing.TextIO: frozenset({Capability.READER, Capability.WRITER}),
    aiohttp.StreamReader: frozenset({Capability.INPUT_STREAM}),
    StreamingOutput: frozenset({Capability.STREAMING_OUTPUT}),
    aiohttp.web.StreamResponse: frozenset({Capability.RESPONSE}),
}


def register(marker: type, *tags: Capability) -> None:
    """Attaches capabilities to a marker type and everything derived from it.

    Meant for import time, before providers are put into service.
    """
    _registry[marker] = _registry.get(marker, frozenset()) | frozenset(tags)
    capabilities_of.cache_clear()


@functools.lru_cache(maxsize=None)
def capabilities_of(type_: typing.Any) -> typing.FrozenSet[Capability]:
    """Returns the union of capabilities of every marker ``type_`` derives from."""
    origin = typing.get_origin(type_) or type_
    if not isinstance(origin, type):
        return frozenset()

    found = frozenset()
    for marker, tags in _registry.items():
        if issubclass(origin, marker):
            found |= tags
    return found
