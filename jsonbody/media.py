#!/usr/bin/env python
# -*- coding: utf-8 -*-

import codecs
import logging
import types
import typing

from aiohttp.helpers import parse_mimetype

from .exceptions import UnsupportedCharsetError

logger = logging.getLogger('jsonbody.media')

APPLICATION_JSON = 'application/json'
TEXT_JSON = 'text/json'

CONSUMES = (APPLICATION_JSON, TEXT_JSON)
PRODUCES = (APPLICATION_JSON, TEXT_JSON)

CHARSET_PARAMETER = 'charset'
DEFAULT_CHARSET = 'utf-8'

WILDCARD = '*'


class MediaType:
    """Content type identifier: major/minor type plus parameters.

    Instances are immutable. The subtype keeps any structured syntax suffix,
    so ``application/vnd.api+json`` has the subtype ``vnd.api+json``.
    """

    def __init__(self, type: str, subtype: str, parameters: typing.Optional[typing.Mapping[str, str]] = None):
        self.__type = type
        self.__subtype = subtype
        self.__parameters = types.MappingProxyType(
            {k.lower(): v for k, v in (parameters or {}).items()})

    @classmethod
    def parse(cls, value: str) -> 'MediaType':
        """Parses a header value such as ``application/json; charset=utf-8``."""
        mime = parse_mimetype(value)
        subtype = mime.subtype
        if mime.suffix:
            subtype = '%s+%s' % (subtype, mime.suffix)
        return cls(mime.type, subtype, dict(mime.parameters))

    @property
    def type(self):
        return self.__type

    @property
    def subtype(self):
        return self.__subtype

    @property
    def parameters(self):
        return self.__parameters

    @property
    def charset(self) -> typing.Optional[str]:
        return self.__parameters.get(CHARSET_PARAMETER)

    @property
    def is_wildcard_type(self):
        return self.__type == WILDCARD

    @property
    def is_wildcard_subtype(self):
        return self.__subtype == WILDCARD

    @property
    def specificity(self) -> int:
        """0 for ``*/*``, 1 for ``type/*``, 2 for a concrete type."""
        if self.is_wildcard_type:
            return 0
        if self.is_wildcard_subtype:
            return 1
        return 2

    def includes(self, other: 'MediaType') -> bool:
        """Tells whether this media range covers ``other``, ignoring parameters."""
        if self.is_wildcard_type:
            return True
        if self.__type.lower() != other.type.lower():
            return False
        return self.is_wildcard_subtype or self.__subtype.lower() == other.subtype.lower()

    def with_charset(self, charset: str) -> 'MediaType':
        parameters = dict(self.__parameters)
        parameters[CHARSET_PARAMETER] = charset
        return MediaType(self.__type, self.__subtype, parameters)

    def without_parameters(self) -> 'MediaType':
        return MediaType(self.__type, self.__subtype)

    def __eq__(self, other):
        if not isinstance(other, MediaType):
            return NotImplemented
        return (self.__type.lower() == other.type.lower()
                and self.__subtype.lower() == other.subtype.lower()
                and dict(self.__parameters) == dict(other.parameters))

    def __hash__(self):
        return hash((self.__type.lower(), self.__subtype.lower(), tuple(sorted(self.__parameters.items()))))

    def __str__(self):
        value = '%s/%s' % (self.__type, self.__subtype)
        for k, v in self.__parameters.items():
            value += '; %s=%s' % (k, v)
        return value

    def __repr__(self):
        return "%s(\"%s\")" % (self.__class__.__name__, str(self))


def is_json_type(media_type: typing.Optional[MediaType]) -> bool:
    """Tells whether a media type carries JSON.

    Inclusive on the major type: any ``*/json`` or ``*/*+json`` counts.
    A missing media type is accepted so bodies can be produced without one.
    """
    if media_type is None:
        return True
    subtype = media_type.subtype.lower()
    return subtype == 'json' or subtype.endswith('+json')


def get_charset(media_type: typing.Optional[MediaType]) -> str:
    """Resolves the charset parameter into a normalized codec name.

    Only a missing parameter falls back to the default; an empty one is as
    unknown as any other bad name.

    :raises UnsupportedCharsetError: if the codec registry doesn't know the name.
    """
    name = media_type.charset if media_type is not None else None
    if name is None:
        logger.debug("No charset in %r, using %s.", media_type, DEFAULT_CHARSET)
        return DEFAULT_CHARSET
    try:
        return codecs.lookup(name).name
    except LookupError as e:
        raise UnsupportedCharsetError(name) from e


def _media_ranges(value: typing.Optional[str]) -> typing.List[typing.Tuple[float, MediaType]]:
    if not value:
        return []

    ranges = []
    for item in value.split(','):
        item = item.strip()
        if not item:
            continue
        media_range = MediaType.parse(item)
        try:
            quality = float(media_range.parameters.get('q', '1'))
        except ValueError:
            logger.debug("Dropping media range with bad quality: %s", item)
            continue
        ranges.append((quality, media_range))
    return ranges


def parse_accept(value: typing.Optional[str]) -> typing.List[MediaType]:
    """Parses an ``Accept`` header into acceptable media ranges, most preferred first.

    Ranges keep their header order among equal ``q`` values. Ranges with an
    unparseable ``q`` are dropped; refused ones (``q=0``) are left to
    :py:func:`parse_refused`.
    """
    ranges = [(quality, media_range) for quality, media_range in _media_ranges(value) if quality > 0]
    ranges.sort(key=lambda r: r[0], reverse=True)
    return [media_range for _, media_range in ranges]


def parse_refused(value: typing.Optional[str]) -> typing.List[MediaType]:
    """Returns the media ranges an ``Accept`` header explicitly refuses with ``q=0``."""
    return [media_range for quality, media_range in _media_ranges(value) if quality <= 0]
