# !/usr/bin/env python
# -*- coding: utf-8 -*-

import codecs
import dataclasses
import enum
import functools
import json
import logging
import types
import typing

from . import JsonMapper
from ..exceptions import MalformedRequestError

logger = logging.getLogger('jsonbody.mappers.json')

JSON_ESCAPE = 'jsonbody.jsonescape'

_NONE_TYPE = type(None)


def _json_escape(error):
    """Codec error handler writing unencodable characters as JSON escapes.

    JSON syntax itself is ASCII, so anything a charset can't represent sits
    inside a string literal, where ``\\uXXXX`` is valid.
    """
    if not isinstance(error, UnicodeEncodeError):
        raise error
    escaped = []
    for char in error.object[error.start:error.end]:
        code = ord(char)
        if code > 0xFFFF:
            code -= 0x10000
            escaped.append('\\u%04x\\u%04x' % (0xD800 | (code >> 10), 0xDC00 | (code & 0x3FF)))
        else:
            escaped.append('\\u%04x' % code)
    return ''.join(escaped), error.end


codecs.register_error(JSON_ESCAPE, _json_escape)


def to_jsonable(obj: typing.Any) -> typing.Any:
    """``default`` hook for :py:func:`json.dumps`."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError("Object of type %s is not JSON serializable" % type(obj).__name__)


class BindError(ValueError):
    """A decoded value doesn't fit the requested type."""

    def __init__(self, path: str, message: str):
        super().__init__('%s: %s' % (path or '$', message))
        self.path = path or '$'


def _is_union(origin) -> bool:
    return origin is typing.Union or (hasattr(types, 'UnionType') and origin is types.UnionType)


def bind(value: typing.Any, target: typing.Any, path: str = '') -> typing.Any:
    """Binds a decoded JSON value to ``target``.

    Handles JSON scalars, containers and their generics, ``Optional``/``Union``,
    enums and dataclasses. Unknown keys in objects bound to dataclasses are
    ignored.
    """
    if target is typing.Any or target is object:
        return value
    if target is None or target is _NONE_TYPE:
        if value is not None:
            raise BindError(path, 'expected null')
        return None

    origin = typing.get_origin(target)
    args = typing.get_args(target)

    if _is_union(origin):
        if value is None and _NONE_TYPE in args:
            return None
        for option in args:
            if option is _NONE_TYPE:
                continue
            try:
                return bind(value, option, path)
            except BindError:
                continue
        raise BindError(path, 'no member of %s matches' % (target,))

    if origin is not None:
        return _bind_generic(value, origin, args, path)

    if dataclasses.is_dataclass(target):
        return _bind_dataclass(value, target, path)

    if isinstance(target, type) and issubclass(target, enum.Enum):
        try:
            return target(value)
        except ValueError:
            raise BindError(path, '%r is not a valid %s' % (value, target.__name__)) from None

    if target is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise BindError(path, 'expected number')

    if target is int and isinstance(value, bool):
        raise BindError(path, 'expected integer')

    if target in (tuple, set, frozenset):
        if not isinstance(value, list):
            raise BindError(path, 'expected array')
        return target(value)

    if isinstance(target, type):
        if not isinstance(value, target):
            raise BindError(path, 'expected %s, got %s' % (target.__name__, type(value).__name__))
        return value

    raise BindError(path, 'unsupported target type %r' % (target,))


def _bind_generic(value, origin, args, path):
    if origin in (list, set, frozenset, tuple):
        if not isinstance(value, list):
            raise BindError(path, 'expected array')
        if origin is tuple and args and args[-1] is not Ellipsis:
            if len(args) != len(value):
                raise BindError(path, 'expected %d items, got %d' % (len(args), len(value)))
            return tuple(bind(v, t, '%s[%d]' % (path, i)) for i, (v, t) in enumerate(zip(value, args)))
        item_type = args[0] if args else typing.Any
        return origin(bind(v, item_type, '%s[%d]' % (path, i)) for i, v in enumerate(value))

    if origin is dict:
        if not isinstance(value, dict):
            raise BindError(path, 'expected object')
        value_type = args[1] if len(args) == 2 else typing.Any
        return {k: bind(v, value_type, '%s.%s' % (path, k)) for k, v in value.items()}

    raise BindError(path, 'unsupported target type %r' % (origin,))


def _bind_dataclass(value, target, path):
    if not isinstance(value, dict):
        raise BindError(path, 'expected object for %s' % target.__name__)

    hints = typing.get_type_hints(target)
    kwargs = {}
    for field in dataclasses.fields(target):
        if not field.init:
            continue
        if field.name in value:
            kwargs[field.name] = bind(value[field.name], hints.get(field.name, typing.Any),
                                      '%s.%s' % (path, field.name))
        elif field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
            raise BindError(path, 'missing field %r' % field.name)
    return target(**kwargs)


class StdJsonMapper(JsonMapper):
    """JSON mapper on top of the standard :py:mod:`json` module.

    ``dumps`` and ``loads`` may be swapped for a faster library with the same
    call shape (``dumps`` may return ``str`` or UTF-8 ``bytes``).
    """

    def __init__(self, dumps: typing.Optional[typing.Callable[[typing.Any], typing.Union[str, bytes]]] = None,
                 loads: typing.Optional[typing.Callable[[str], typing.Any]] = None):
        self.dumps = dumps or functools.partial(json.dumps, ensure_ascii=False, default=to_jsonable)
        self.loads = loads or json.loads

    def encode(self, obj: typing.Any, stream: typing.BinaryIO, charset: str) -> None:
        text = self.dumps(obj)
        if isinstance(text, bytes):
            text = text.decode('utf-8')
        stream.write(text.encode(charset, JSON_ESCAPE))

    def decode(self, stream: typing.BinaryIO, charset: str, target_type: typing.Any) -> typing.Any:
        data = stream.read()

        try:
            text = data.decode(charset)
        except UnicodeDecodeError as e:
            raise MalformedRequestError('Body is not valid %s' % charset) from e

        if not text.strip():
            raise MalformedRequestError('Empty body')

        try:
            value = self.loads(text)
        except ValueError as e:
            logger.debug("Malformed JSON body: %s", e)
            raise MalformedRequestError('Invalid JSON document') from e

        try:
            return bind(value, target_type)
        except BindError as e:
            raise MalformedRequestError('Cannot bind body to %s' % getattr(target_type, '__name__', target_type),
                                        data={'path': e.path, 'reason': str(e)}) from e
