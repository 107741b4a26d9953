import io
import typing

import aiohttp.web

from jsonbody import capabilities
from jsonbody.capabilities import Capability, StreamingOutput, capabilities_of
from tests.dummies import Guest


class Chunks(StreamingOutput):
    def write(self, stream: typing.BinaryIO) -> None:
        stream.write(b"chunk")


def test_streams_are_tagged() -> None:
    assert capabilities_of(io.BytesIO) == {Capability.INPUT_STREAM, Capability.OUTPUT_STREAM}
    assert capabilities_of(io.StringIO) == {Capability.READER, Capability.WRITER}
    assert capabilities_of(io.BufferedReader) == {Capability.INPUT_STREAM, Capability.OUTPUT_STREAM}


def test_typing_streams_are_tagged() -> None:
    both = {Capability.INPUT_STREAM, Capability.OUTPUT_STREAM}
    assert capabilities_of(typing.IO) == both
    assert capabilities_of(typing.BinaryIO) == both
    assert capabilities_of(typing.IO[bytes]) == both
    assert capabilities_of(typing.TextIO) == both | {Capability.READER, Capability.WRITER}


def test_responses_and_streaming_outputs_are_tagged() -> None:
    assert capabilities_of(aiohttp.web.Response) == {Capability.RESPONSE}
    assert capabilities_of(aiohttp.web.FileResponse) == {Capability.RESPONSE}
    assert capabilities_of(Chunks) == {Capability.STREAMING_OUTPUT}


def test_plain_types_have_no_capabilities() -> None:
    assert capabilities_of(Guest) == frozenset()
    assert capabilities_of(dict) == frozenset()
    assert capabilities_of(typing.List[int]) == frozenset()
    assert capabilities_of(typing.Any) == frozenset()


def test_register() -> None:
    class Pipe:
        pass

    class SubPipe(Pipe):
        pass

    assert capabilities_of(SubPipe) == frozenset()
    capabilities.register(Pipe, Capability.OUTPUT_STREAM)
    try:
        assert capabilities_of(SubPipe) == {Capability.OUTPUT_STREAM}
    finally:
        del capabilities._registry[Pipe]
        capabilities_of.cache_clear()
