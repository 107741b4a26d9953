import typing


class BaseError(Exception):
    """Base library exception. Shouldn't be used directly."""
    pass


class UnsupportedCharsetError(BaseError, LookupError):
    """The charset named by a media type is not known to the codec registry."""

    def __init__(self, charset: str):
        super().__init__(charset)
        self.__charset = charset

    @property
    def charset(self):
        return self.__charset

    def __str__(self):
        return "Unsupported charset: '%s'" % self.charset


class HttpError(BaseError):
    """Base class for errors that map onto an HTTP status.

    Transports translate these into replies; clients raise them for error replies."""

    default_status = 500
    default_message = 'Internal Server Error'

    def __init__(self, message: typing.Optional[str] = None, data: typing.Optional[typing.Any] = None,
                 status: typing.Optional[int] = None):
        self.__status = status if status is not None else self.default_status
        self.__message = message if message is not None else self.default_message
        self.__data = data
        super().__init__(self.__message)

    @property
    def status(self):
        return self.__status

    @property
    def message(self):
        return self.__message

    @property
    def data(self):
        return self.__data

    def __str__(self):
        return "HTTP %s: '%s'" % (self.status, self.message)

    def __repr__(self):
        return "%s(\"%s\")" % (self.__class__.__name__, str(self))


class MalformedRequestError(HttpError):
    """The request body could not be decoded into the requested type."""
    default_status = 400
    default_message = 'Bad Request'


class NotAcceptableError(HttpError):
    """None of the accepted media types can be produced for the reply."""
    default_status = 406
    default_message = 'Not Acceptable'


class UnsupportedMediaTypeError(HttpError):
    """The body's media type cannot be read as the requested type."""
    default_status = 415
    default_message = 'Unsupported Media Type'


class TransportNotActiveError(BaseError):
    """Transport was used before start/open or after stop/close."""
    pass
