#!/usr/bin/env python
# -*- coding: utf-8 -*-

import io
import logging
import threading
import typing

import aiohttp
import aiohttp.web

from . import media
from .capabilities import Capability, StreamingOutput, capabilities_of
from .mapper import JsonMapper
from .media import MediaType
from .outcome import attempt

logger = logging.getLogger('jsonbody.provider')

# Core types that make no sense to bind from or to JSON; the framework moves
# them as raw bodies.
UNTOUCHABLES = frozenset({
    io.IOBase,
    io.RawIOBase,
    io.BufferedIOBase,
    io.TextIOBase,
    typing.IO,
    typing.BinaryIO,
    typing.TextIO,
    bytes,
    bytearray,
    memoryview,
    str,
    aiohttp.StreamReader,
    StreamingOutput,
    aiohttp.web.StreamResponse,
    aiohttp.web.Response,
})

UNREADABLE = frozenset({Capability.INPUT_STREAM, Capability.READER})

UNWRITEABLE = frozenset({
    Capability.OUTPUT_STREAM,
    Capability.WRITER,
    Capability.STREAMING_OUTPUT,
    Capability.RESPONSE,
})

UNKNOWN_SIZE = -1


class JsonProvider:
    """Reads and writes HTTP message bodies as JSON through a :py:class:`JsonMapper`.

    The framework asks :py:meth:`is_readable` / :py:meth:`is_writeable` first and
    only calls :py:meth:`read` / :py:meth:`write` when they say yes. One
    provider is shared by every exchange.

    :param mapper: The :py:class:`~jsonbody.mapper.JsonMapper` doing the actual work.
    :param ignored: Types never handled as JSON, in either direction.
    """

    consumes = media.CONSUMES
    produces = media.PRODUCES

    def __init__(self, mapper: JsonMapper, ignored: typing.Iterable[typing.Any] = ()):
        self.__mapper = mapper
        self.__ignored = frozenset(ignored)
        self.__lock = threading.Lock()

    @property
    def mapper(self):
        return self.__mapper

    @property
    def ignored(self) -> typing.FrozenSet[typing.Any]:
        return self.__ignored

    def ignore(self, *types) -> 'JsonProvider':
        """Excludes more types from reading and writing.

        The ignored set is replaced, never changed in place, so checks running
        concurrently see either the old set or the new one.
        """
        with self.__lock:
            self.__ignored = self.__ignored | frozenset(types)
        return self

    def is_readable(self, type_: typing.Any, media_type: typing.Optional[MediaType]) -> bool:
        return self._is_eligible(type_, media_type, UNREADABLE)

    def is_writeable(self, type_: typing.Any, media_type: typing.Optional[MediaType]) -> bool:
        return self._is_eligible(type_, media_type, UNWRITEABLE)

    def _is_eligible(self, type_, media_type, excluded) -> bool:
        if not self.is_json_type(media_type):
            return False

        if type_ in UNTOUCHABLES:
            return False

        # and abstract stream-like types
        if capabilities_of(type_) & excluded:
            return False

        # as well as possible custom exclusions
        if type_ in self.__ignored:
            return False

        return True

    def read(self, type_: typing.Any, media_type: typing.Optional[MediaType],
             headers: typing.Optional[typing.Mapping[str, str]], stream: typing.BinaryIO) -> typing.Any:
        """Decodes the body into an instance of ``type_``.

        Decoding and stream errors propagate unchanged.
        """
        return self.__mapper.decode(stream, self.get_charset(media_type), type_)

    def write(self, obj: typing.Any, type_: typing.Any, media_type: typing.Optional[MediaType],
              headers: typing.Optional[typing.Mapping[str, str]], stream: typing.BinaryIO) -> None:
        """Encodes ``obj`` into the body.

        A peer closing the connection mid-write is not an error here: the
        client is gone and nothing can be done about it. Other stream errors
        propagate unchanged.
        """
        charset = self.get_charset(media_type)
        attempt(self.__mapper.encode, obj, stream, charset).unwrap()

    def get_size(self, *args, **kwargs) -> int:
        """Body length is never known up front."""
        return UNKNOWN_SIZE

    def is_json_type(self, media_type: typing.Optional[MediaType]) -> bool:
        return media.is_json_type(media_type)

    @staticmethod
    def get_charset(media_type: typing.Optional[MediaType]) -> str:
        return media.get_charset(media_type)
