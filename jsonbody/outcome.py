"""Outcome of writing a body to a peer.

Writing can succeed, stop early because the peer went away, or fail. Only the
last one is an error worth surfacing.
"""

import errno
import typing

BROKEN_PIPE_MESSAGE = 'Broken pipe'

_PEER_CLOSED_ERRNOS = frozenset({errno.EPIPE, errno.ECONNRESET})


class Outcome:
    """Base class for all write outcomes."""

    def unwrap(self) -> None:
        """Re-raises the failure, if any."""
        raise NotImplementedError()


class Ok(Outcome):
    def unwrap(self) -> None:
        return None

    def __eq__(self, other):
        return isinstance(other, Ok)

    def __hash__(self):
        return hash(Ok)

    def __repr__(self):
        return 'Ok()'


class PeerClosed(Outcome):
    """The remote end closed the connection before the body was written."""

    def __init__(self, cause: typing.Optional[BaseException] = None):
        self.__cause = cause

    @property
    def cause(self):
        return self.__cause

    def unwrap(self) -> None:
        return None

    def __repr__(self):
        return 'PeerClosed(%r)' % (self.cause,)


class Failed(Outcome):
    def __init__(self, cause: BaseException):
        self.__cause = cause

    @property
    def cause(self):
        return self.__cause

    def unwrap(self) -> None:
        raise self.__cause

    def __repr__(self):
        return 'Failed(%r)' % (self.cause,)


def is_peer_closed(exc: BaseException) -> bool:
    if isinstance(exc, (EOFError, BrokenPipeError, ConnectionResetError)):
        return True
    if isinstance(exc, OSError):
        if exc.errno in _PEER_CLOSED_ERRNOS:
            return True
        # Some streams only report the condition through the message text.
        message = str(exc)
        return BROKEN_PIPE_MESSAGE in message
    return False


def classify(exc: BaseException) -> Outcome:
    if is_peer_closed(exc):
        return PeerClosed(exc)
    return Failed(exc)


def attempt(fn: typing.Callable[..., typing.Any], *args, **kwargs) -> Outcome:
    """Runs a write and reports how it went.

    Only stream errors (``OSError`` and ``EOFError``) become outcomes; anything
    else propagates.
    """
    try:
        fn(*args, **kwargs)
    except (OSError, EOFError) as e:
        return classify(e)
    return Ok()
