#!/usr/bin/env python
# -*- coding: utf-8 -*-

import io
import logging
import typing

import aiohttp
import aiohttp.web
from aiohttp import hdrs

from . import ServerTransport, ClientTransport, process, encode, error_body
from ..exceptions import HttpError, MalformedRequestError, UnsupportedMediaTypeError, TransportNotActiveError
from ..media import MediaType, APPLICATION_JSON, DEFAULT_CHARSET
from ..outcome import Ok, Outcome, classify
from ..provider import JsonProvider

logger = logging.getLogger('jsonbody.transports.aiohttp')

DEFAULT_TIMEOUT = 10
DEFAULT_SERVER_PORT = 80
DEFAULT_PATH = '/'

ERROR_MEDIA_TYPE = MediaType('application', 'json', {'charset': DEFAULT_CHARSET})


async def write_body(response: aiohttp.web.StreamResponse, data: bytes) -> Outcome:
    """Writes a prepared response's body and finishes it."""
    try:
        await response.write(data)
        await response.write_eof()
    except (OSError, EOFError) as e:
        return classify(e)
    return Ok()


class AioHTTPServerTransport(ServerTransport):
    """Server transport based on aiohttp.

    Serves one POST endpoint. Request bodies are read as ``request_type`` and
    replies written as ``response_type``, both negotiated through ``provider``.
    """

    def __init__(self, provider: JsonProvider, request_type: typing.Any = typing.Any,
                 response_type: typing.Any = typing.Any, host=None, port=DEFAULT_SERVER_PORT,
                 path=DEFAULT_PATH):
        super().__init__()
        self.provider = provider
        self.request_type = request_type
        self.response_type = response_type
        self.host = host
        self.port = port
        self.path = path
        self.runner = None
        self.__handler = None

    def build_app(self, handler=None) -> aiohttp.web.Application:
        if handler is not None:
            self.__handler = handler
        app = aiohttp.web.Application()
        app.router.add_route('*', self.path, self._handle)
        return app

    async def start(self, handler):
        self.runner = aiohttp.web.AppRunner(self.build_app(handler))
        await self.runner.setup()
        site = aiohttp.web.TCPSite(self.runner, self.host, self.port, backlog=128)
        await site.start()
        self._active = True
        logger.info("Listening on http://%s:%s%s", self.host, self.port, self.path)

    async def stop(self):
        if self.runner:
            logger.info("Closing server...")
            await self.runner.cleanup()
            self.runner = None
            logger.info("Closed.")
        self._active = False

    async def _handle(self, request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        if request.method != hdrs.METH_POST:
            logger.warning("Bad method %s from %s.", request.method, request.remote)
            return self._error_response(HttpError('Method Not Allowed', status=405))

        body = await request.read()

        try:
            media_type, result = await process(
                self.provider, self.request_type, self.response_type, self.__handler, body,
                request.headers.get(hdrs.CONTENT_TYPE), request.headers.get(hdrs.ACCEPT))
        except MalformedRequestError as e:
            logger.warning("Malformed body from %s: %s", request.remote, e)
            return self._error_response(e)
        except HttpError as e:
            logger.warning("Rejected request from %s: %s", request.remote, e)
            return self._error_response(e)

        data = encode(self.provider, result, self.response_type, media_type)

        response = aiohttp.web.StreamResponse()
        response.headers[hdrs.CONTENT_TYPE] = str(media_type)
        if self.provider.get_size(result, self.response_type, media_type) < 0:
            response.enable_chunked_encoding()
        await response.prepare(request)

        (await write_body(response, data)).unwrap()
        return response

    def _error_response(self, error: HttpError) -> aiohttp.web.Response:
        body = encode(self.provider, error_body(error), dict, ERROR_MEDIA_TYPE)
        headers = {hdrs.CONTENT_TYPE: str(ERROR_MEDIA_TYPE)}
        return aiohttp.web.Response(status=error.status, body=body, headers=headers)


class AioHTTPClientTransport(ClientTransport):
    """Client transport based on aiohttp."""

    def __init__(self, url, provider: JsonProvider, timeout=DEFAULT_TIMEOUT, session=None,
                 content_type=APPLICATION_JSON):
        super().__init__()
        self.url = url
        self.provider = provider
        self.timeout = timeout
        self.session = session
        self.own_session = session is None
        self.media_type = MediaType.parse(content_type).with_charset(DEFAULT_CHARSET)

    async def open(self):
        if self.own_session:
            self.session = aiohttp.ClientSession()
        self._active = True

    async def close(self):
        if self.session and self.own_session:
            await self.session.close()
            self.session = None
        self._active = False

    async def send(self, obj, response_type=typing.Any):
        if not self._active:
            raise TransportNotActiveError('Transport is closed')

        if not self.provider.is_writeable(type(obj), self.media_type):
            raise UnsupportedMediaTypeError('Cannot write %s as %s' % (type(obj).__name__, self.media_type))

        data = encode(self.provider, obj, type(obj), self.media_type)
        headers = {
            hdrs.CONTENT_TYPE: str(self.media_type),
            hdrs.ACCEPT: ', '.join(self.provider.produces),
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with self.session.post(self.url, data=data, headers=headers, timeout=timeout) as response:
            status = response.status
            reason = response.reason
            content_type = response.headers.get(hdrs.CONTENT_TYPE)
            body = await response.read()

        media_type = MediaType.parse(content_type) if content_type else None

        if status >= 400:
            raise self._reply_error(status, reason, media_type, body)

        if not self.provider.is_readable(response_type, media_type):
            raise UnsupportedMediaTypeError('Cannot read reply as %s from %s' % (response_type, content_type))

        return self.provider.read(response_type, media_type, response.headers, io.BytesIO(body))

    def _reply_error(self, status, reason, media_type, body) -> HttpError:
        if body and self.provider.is_readable(dict, media_type):
            try:
                error = self.provider.read(dict, media_type, None, io.BytesIO(body)).get('error')
            except MalformedRequestError:
                logger.warning("Unreadable error reply with status %s.", status)
            else:
                if isinstance(error, dict):
                    return HttpError(error.get('message', reason), error.get('data'), status=status)
        return HttpError(reason, status=status)

    def __del__(self):
        if self._active:
            logger.warning("Unclosed client transport!")
