import io
import threading
import typing

import aiohttp
import aiohttp.web
import pytest

from jsonbody import JsonProvider, MediaType
from jsonbody.capabilities import StreamingOutput
from jsonbody.exceptions import MalformedRequestError, UnsupportedCharsetError
from jsonbody.mappers.json import StdJsonMapper
from tests.dummies import Address, FailingStream, Guest, Plain, RecordingMapper

JSON = MediaType.parse("application/json")
VENDOR_JSON = MediaType.parse("application/vnd.api+json")
TEXT_PLAIN = MediaType.parse("text/plain")

UNTOUCHABLE = [
    bytes,
    bytearray,
    memoryview,
    str,
    io.IOBase,
    io.RawIOBase,
    io.BufferedIOBase,
    io.TextIOBase,
    typing.IO,
    typing.BinaryIO,
    typing.TextIO,
    aiohttp.StreamReader,
    StreamingOutput,
    aiohttp.web.StreamResponse,
    aiohttp.web.Response,
]


@pytest.fixture()
def provider() -> JsonProvider:
    return JsonProvider(StdJsonMapper())


@pytest.mark.parametrize("type_", UNTOUCHABLE)
@pytest.mark.parametrize("media_type", [JSON, VENDOR_JSON, TEXT_PLAIN, None])
def test_untouchables(provider: JsonProvider, type_: type, media_type: typing.Optional[MediaType]) -> None:
    assert not provider.is_readable(type_, media_type)
    assert not provider.is_writeable(type_, media_type)


@pytest.mark.parametrize("type_", [Guest, dict, list, int, typing.Any, typing.List[Address], Plain])
def test_plain_types(provider: JsonProvider, type_: typing.Any) -> None:
    for media_type in (JSON, VENDOR_JSON, MediaType.parse("text/json"), None):
        assert provider.is_readable(type_, media_type)
        assert provider.is_writeable(type_, media_type)
    assert not provider.is_readable(type_, TEXT_PLAIN)
    assert not provider.is_writeable(type_, TEXT_PLAIN)


@pytest.mark.parametrize("type_", [typing.IO[bytes], typing.IO[str], typing.IO[typing.Any]])
def test_parameterized_io_streams(provider: JsonProvider, type_: typing.Any) -> None:
    for media_type in (JSON, None):
        assert not provider.is_readable(type_, media_type)
        assert not provider.is_writeable(type_, media_type)


def test_stream_subclasses(provider: JsonProvider) -> None:
    class Chunks(StreamingOutput):
        def write(self, stream: typing.BinaryIO) -> None:
            pass

    # Input streams can't be read into, output-like things can't be written.
    assert not provider.is_readable(io.BytesIO, JSON)
    assert not provider.is_writeable(io.BytesIO, JSON)
    assert not provider.is_readable(io.StringIO, JSON)
    assert provider.is_readable(aiohttp.web.FileResponse, JSON)
    assert not provider.is_writeable(aiohttp.web.FileResponse, JSON)
    assert not provider.is_writeable(Chunks, JSON)
    assert provider.is_readable(Chunks, JSON)


def test_ignore(provider: JsonProvider) -> None:
    assert provider.is_readable(Plain, JSON)
    assert provider.ignore(Plain, Address) is provider
    assert provider.ignored == {Plain, Address}
    assert not provider.is_readable(Plain, JSON)
    assert not provider.is_writeable(Plain, JSON)
    assert not provider.is_writeable(Address, VENDOR_JSON)
    assert provider.is_writeable(Guest, JSON)


def test_ignored_at_construction() -> None:
    provider = JsonProvider(StdJsonMapper(), ignored=[Plain])
    assert not provider.is_readable(Plain, JSON)
    assert not provider.is_writeable(Plain, None)


def test_ignore_concurrently(provider: JsonProvider) -> None:
    types = [type("T%d" % i, (), {}) for i in range(50)]
    threads = [threading.Thread(target=provider.ignore, args=(t,)) for t in types]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert provider.ignored == set(types)


@pytest.mark.parametrize(
    ("media_type", "charset"),
    [
        (None, "utf-8"),
        (JSON, "utf-8"),
        (MediaType.parse("application/json; charset=ISO-8859-1"), "iso8859-1"),
    ],
)
def test_charset_passed_to_mapper(media_type: typing.Optional[MediaType], charset: str) -> None:
    mapper = RecordingMapper()
    provider = JsonProvider(mapper)
    provider.write("x", Plain, media_type, None, io.BytesIO())
    provider.read(Plain, media_type, None, io.BytesIO(b"x"))
    assert mapper.calls == [("encode", charset), ("decode", charset, Plain)]


def test_default_charset_is_utf8(provider: JsonProvider) -> None:
    value = {"a": 1, "name": "Zoë"}
    no_charset, no_media_type, mapped = io.BytesIO(), io.BytesIO(), io.BytesIO()
    provider.write(value, dict, JSON, None, no_charset)
    provider.write(value, dict, None, None, no_media_type)
    StdJsonMapper().encode(value, mapped, "utf-8")
    assert no_charset.getvalue() == no_media_type.getvalue() == mapped.getvalue()


def test_latin1_charset(provider: JsonProvider) -> None:
    media_type = MediaType.parse("application/json; charset=ISO-8859-1")
    stream = io.BytesIO()
    provider.write({"name": "Zoë"}, dict, media_type, None, stream)
    assert stream.getvalue() == '{"name": "Zoë"}'.encode("iso8859-1")
    stream.seek(0)
    assert provider.read(dict, media_type, None, stream) == {"name": "Zoë"}


def test_unsupported_charset(provider: JsonProvider) -> None:
    media_type = MediaType.parse("application/json; charset=klingon")
    with pytest.raises(UnsupportedCharsetError):
        provider.read(dict, media_type, None, io.BytesIO(b"{}"))
    with pytest.raises(UnsupportedCharsetError):
        provider.write({}, dict, media_type, None, io.BytesIO())


def test_read_propagates_failures(provider: JsonProvider) -> None:
    with pytest.raises(MalformedRequestError):
        provider.read(dict, JSON, None, io.BytesIO(b"{"))

    class Unreadable(io.RawIOBase):
        def read(self, size: int = -1) -> bytes:
            raise OSError("Connection timed out")

    with pytest.raises(OSError, match="Connection timed out"):
        provider.read(dict, JSON, None, Unreadable())


@pytest.mark.parametrize(
    "error",
    [
        IOError("Broken pipe"),
        OSError("write failed: Broken pipe"),
        BrokenPipeError(),
        ConnectionResetError(),
        EOFError(),
    ],
)
def test_write_swallows_peer_closed(provider: JsonProvider, error: BaseException) -> None:
    provider.write({"a": 1}, dict, JSON, None, FailingStream(error))


def test_write_swallows_peer_closed_from_mapper() -> None:
    provider = JsonProvider(RecordingMapper(encode_error=IOError("write: Broken pipe")))
    provider.write({"a": 1}, dict, JSON, None, io.BytesIO())


def test_write_reraises_other_failures(provider: JsonProvider) -> None:
    error = OSError("No space left on device")
    with pytest.raises(OSError) as exc_info:
        provider.write({"a": 1}, dict, JSON, None, FailingStream(error))
    assert exc_info.value is error


def test_write_reraises_non_stream_failures(provider: JsonProvider) -> None:
    with pytest.raises(TypeError):
        provider.write(object(), Plain, JSON, None, io.BytesIO())


@pytest.mark.parametrize("args", [(), (None, dict, JSON), ({"a": 1}, dict, None, "extra")])
def test_get_size(provider: JsonProvider, args: tuple) -> None:
    assert provider.get_size(*args) == -1


def test_round_trip(provider: JsonProvider) -> None:
    guest = Guest(name="Ann", party_size=3, addresses=[Address("1 Main St", "12345")], tags={"vip": 1.5})
    assert provider.is_writeable(Guest, JSON)
    assert provider.is_readable(Guest, JSON)

    stream = io.BytesIO()
    provider.write(guest, Guest, JSON, None, stream)
    stream.seek(0)
    assert provider.read(Guest, JSON, None, stream) == guest
