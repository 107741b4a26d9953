#!/usr/bin/env python
# -*- coding: utf-8 -*-

import io
import logging
import typing

from ..exceptions import HttpError, NotAcceptableError, UnsupportedMediaTypeError, UnsupportedCharsetError, \
    MalformedRequestError
from ..media import MediaType, DEFAULT_CHARSET, parse_accept, parse_refused
from ..provider import JsonProvider
from ..transport import ServerTransport, ClientTransport

logger = logging.getLogger('jsonbody.transports')

__all__ = [
    'ServerTransport',
    'ClientTransport',
    'negotiate_request',
    'negotiate_response',
    'process',
    'encode',
    'error_body',
]


def negotiate_request(provider: JsonProvider, type_: typing.Any,
                      content_type: typing.Optional[str]) -> typing.Optional[MediaType]:
    """Picks the media type a request body is read with.

    :raises UnsupportedMediaTypeError: if the provider can't read ``type_`` from it.
    """
    media_type = MediaType.parse(content_type) if content_type else None
    if not provider.is_readable(type_, media_type):
        raise UnsupportedMediaTypeError('Cannot read %s from %s' % (_type_name(type_), content_type))
    return media_type


def negotiate_response(provider: JsonProvider, type_: typing.Any, accept: typing.Optional[str]) -> MediaType:
    """Picks the media type a reply body is written with.

    Wildcard ranges resolve to the first produced type they cover that no
    range at least as specific refuses with ``q=0``. Without an ``Accept``
    header the first produced type is used.

    :raises NotAcceptableError: if no accepted range can be written.
    """
    produced = [MediaType.parse(p) for p in provider.produces]
    if accept:
        ranges = parse_accept(accept)
        refused = parse_refused(accept)
    else:
        ranges = produced[:1]
        refused = []

    for media_range in ranges:
        if media_range.specificity < 2:
            candidates = [p for p in produced if media_range.includes(p)
                          and not any(r.includes(p) and r.specificity >= media_range.specificity for r in refused)]
        else:
            candidates = [media_range.without_parameters()]
        for candidate in candidates:
            candidate = candidate.with_charset(DEFAULT_CHARSET)
            if provider.is_writeable(type_, candidate):
                return candidate

    raise NotAcceptableError('Cannot write %s as any of: %s' % (_type_name(type_), accept))


async def process(provider: JsonProvider, request_type: typing.Any, response_type: typing.Any,
                  handler: typing.Callable[[typing.Any], typing.Awaitable[typing.Any]],
                  body: bytes, content_type: typing.Optional[str],
                  accept: typing.Optional[str]) -> typing.Tuple[MediaType, typing.Any]:
    """Runs one exchange up to, but not including, writing the reply.

    Negotiates both media types before calling ``handler``, so a client that
    can't take the reply never triggers any work.

    :return: The reply media type and the handler's result.
    :raises HttpError: on any negotiation or decoding failure.
    """
    request_media_type = negotiate_request(provider, request_type, content_type)
    reply_media_type = negotiate_response(provider, response_type, accept)

    try:
        obj = provider.read(request_type, request_media_type, None, io.BytesIO(body))
    except UnsupportedCharsetError as e:
        raise MalformedRequestError(str(e)) from e

    result = await handler(obj)
    return reply_media_type, result


def encode(provider: JsonProvider, obj: typing.Any, type_: typing.Any,
           media_type: typing.Optional[MediaType]) -> bytes:
    buffer = io.BytesIO()
    provider.write(obj, type_, media_type, None, buffer)
    return buffer.getvalue()


def error_body(error: HttpError) -> dict:
    body = {
        'status': error.status,
        'message': error.message,
    }
    if error.data is not None:
        body['data'] = error.data
    return {'error': body}


def _type_name(type_):
    return getattr(type_, '__name__', str(type_))
