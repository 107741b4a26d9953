import typing


class JsonMapper:
    """Base class for all JSON mappers.

    Mappers must be safe to use from several threads at once: a single
    instance serves every exchange.
    """

    def decode(self, stream: typing.BinaryIO, charset: str, target_type: typing.Any) -> typing.Any:
        """Decode the stream contents into an instance of ``target_type``."""
        raise NotImplementedError()

    def encode(self, obj: typing.Any, stream: typing.BinaryIO, charset: str) -> None:
        """Encode ``obj`` into the stream."""
        raise NotImplementedError()
