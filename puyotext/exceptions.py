class PuyoTextException(Exception):
    '''Base class to extend in order to throw exception in puyotext.

    It takes an optional argument that represents the chain of the record
    fields that were being unpacked when the exception was raised.
    '''

    def __init__(self, message='', chain=None):
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        message = super().__str__()
        if not self.chain:
            return message

        return '%s (at %s)' % (message, '.'.join(reversed(self.chain)))


class FormatException(PuyoTextException):
    '''The data is not in the format we are trying to read.'''
    pass


class MagicException(FormatException):
    pass


class StreamException(PuyoTextException):
    '''Seeking or writing outside the boundaries of a stream.'''
    pass


class UnpackException(StreamException):
    '''Not enough data to read.'''
    pass


class EncodingMismatchException(PuyoTextException):
    '''The token stream asks for a different text encoding.'''
    pass


class CharacterNotFoundException(PuyoTextException, LookupError):
    pass


class UnsupportedTagException(PuyoTextException):
    pass


class MarkupException(PuyoTextException):
    pass


class UnrecoverableException(PuyoTextException):
    '''This is raised when an internal invariant doesn't hold: it means
    there is a bug, not some bad input.'''
    pass
