class ChunkIOException(Exception):
    '''Base class to extend in order to throw exception in chunkio.

    It takes an optional message and the chain of the fields that caused
    the exception; the innermost field comes first.
    '''

    def __init__(self, message='', chain=None):
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        message = super().__str__()
        if not self.chain:
            return message

        return '%s (at field \'%s\')' % (message, '.'.join(self.chain[::-1]))


class UnpackException(ChunkIOException):
    pass


class EndOfDataException(UnpackException, EOFError):
    '''Fewer bytes are available than the decoding requires.'''
    pass


class MagicException(UnpackException):
    pass


class OutOfRangeException(ChunkIOException, ValueError):
    pass


class SeekBeforeBeginException(OutOfRangeException):
    pass


class SeekAfterEndException(OutOfRangeException):
    pass


class UnsupportedException(ChunkIOException):
    '''The operation is not valid for the current mode of the object.'''
    pass


class DisposedException(ChunkIOException, ValueError):
    pass


class InvalidArgumentException(ChunkIOException, ValueError):
    pass
