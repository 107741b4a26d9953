#!/usr/bin/env python
# -*- coding: utf-8 -*-

from .exceptions import BaseError, HttpError, MalformedRequestError, NotAcceptableError, \
    UnsupportedCharsetError, UnsupportedMediaTypeError, TransportNotActiveError
from .mapper import JsonMapper
from .media import MediaType, is_json_type, get_charset
from .provider import JsonProvider

__version__ = '0.1.0'

__all__ = [
    'BaseError',
    'HttpError',
    'JsonMapper',
    'JsonProvider',
    'MalformedRequestError',
    'MediaType',
    'NotAcceptableError',
    'TransportNotActiveError',
    'UnsupportedCharsetError',
    'UnsupportedMediaTypeError',
    'get_charset',
    'is_json_type',
]
