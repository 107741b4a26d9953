#!/usr/bin/env python
# -*- coding: utf-8 -*-

import io
import logging
import typing

from . import ServerTransport, ClientTransport, process, encode, error_body
from ..exceptions import HttpError, TransportNotActiveError, UnsupportedMediaTypeError
from ..media import MediaType, APPLICATION_JSON, DEFAULT_CHARSET
from ..provider import JsonProvider

logger = logging.getLogger('jsonbody.transports.local')

ERROR_CONTENT_TYPE = 'application/json; charset=%s' % DEFAULT_CHARSET


class LocalReply(typing.NamedTuple):
    status: int
    content_type: str
    body: bytes


class LocalServerTransport(ServerTransport):
    """Local Server transport. Useful for experiments and testing.

    Runs the same negotiation as the network transports, minus the network.
    """

    def __init__(self, provider: JsonProvider, request_type: typing.Any = typing.Any,
                 response_type: typing.Any = typing.Any):
        super().__init__()
        self.provider = provider
        self.request_type = request_type
        self.response_type = response_type
        self.__handler = None

    async def process(self, body: bytes, content_type: typing.Optional[str] = APPLICATION_JSON,
                      accept: typing.Optional[str] = None) -> LocalReply:
        if not self._active:
            raise TransportNotActiveError('Transport is not started')

        logger.debug("SERVER RECV: %r", body)
        try:
            media_type, result = await process(self.provider, self.request_type, self.response_type,
                                               self.__handler, body, content_type, accept)
        except HttpError as e:
            logger.warning("Rejected request: %s", e)
            reply = LocalReply(e.status, ERROR_CONTENT_TYPE,
                               encode(self.provider, error_body(e), dict, MediaType.parse(ERROR_CONTENT_TYPE)))
        else:
            reply = LocalReply(200, str(media_type), encode(self.provider, result, self.response_type, media_type))
        logger.debug("SERVER SEND: %r", reply)
        return reply

    async def start(self, handler: typing.Callable):
        self.__handler = handler
        self._active = True

    async def stop(self):
        self._active = False
        self.__handler = None
        logger.info("Closed.")


class LocalClientTransport(ClientTransport):
    """Local Client transport. Useful for experiments and testing."""

    def __init__(self, server: LocalServerTransport, provider: JsonProvider, content_type=APPLICATION_JSON):
        super().__init__()
        self.server = server
        self.provider = provider
        self.media_type = MediaType.parse(content_type)

    async def open(self):
        self._active = True

    async def close(self):
        self._active = False

    async def send(self, obj, response_type=typing.Any):
        if not self._active:
            raise TransportNotActiveError('Transport is closed')

        data = encode(self.provider, obj, type(obj), self.media_type)
        reply = await self.server.process(data, str(self.media_type), ', '.join(self.provider.produces))

        media_type = MediaType.parse(reply.content_type)
        if reply.status >= 400:
            error = self.provider.read(dict, media_type, None, io.BytesIO(reply.body))['error']
            raise HttpError(error['message'], error.get('data'), status=reply.status)

        if not self.provider.is_readable(response_type, media_type):
            raise UnsupportedMediaTypeError('Cannot read reply as %s from %s' % (response_type, reply.content_type))
        return self.provider.read(response_type, media_type, None, io.BytesIO(reply.body))
