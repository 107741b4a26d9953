import typing


class ServerTransport:
    """Base class for all server transports."""

    def __init__(self):
        self._active = False

    @property
    def active(self):
        return self._active

    async def start(self, handler: typing.Callable[[typing.Any], typing.Awaitable[typing.Any]]):
        """Starts serving requests.

        Each request body is decoded by the transport's provider and passed to
        ``handler``; whatever the handler returns is encoded as the reply.

        :param handler: Coroutine function taking the decoded request object.
        """
        raise NotImplementedError()

    async def stop(self):
        """Stops serving requests and releases the transport's resources."""
        raise NotImplementedError()


class ClientTransport:
    """Base class for all client transports."""

    def __init__(self):
        self._active = False

    @property
    def active(self):
        return self._active

    async def open(self):
        raise NotImplementedError()

    async def close(self):
        raise NotImplementedError()

    async def send(self, obj: typing.Any, response_type: typing.Any = typing.Any) -> typing.Any:
        """Send an object to the server and decode the reply.

        :param obj: The object to send as the request body.
        :param response_type: Type the reply body is decoded into.
        :return: The decoded reply.
        """
        raise NotImplementedError()
