import io
import logging
import os
from collections import namedtuple
from contextlib import contextmanager

from .enum import WindowMode
from .exceptions import (
    DisposedException,
    InvalidArgumentException,
    OutOfRangeException,
    SeekAfterEndException,
    SeekBeforeBeginException,
    UnsupportedException,
)


logger = logging.getLogger(__name__)


def stream_length(stream) -> int:
    '''Length of a seekable stream, its position is left untouched.'''
    position = stream.tell()
    length = stream.seek(0, io.SEEK_END)
    stream.seek(position, io.SEEK_SET)

    return length


class Stream(object):
    '''This is a simple wrapper around bytes/path/file object to
    uniform its properties: the result is always a binary file object
    with a length and a position.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._owned = False

        if isinstance(obj, (bytes, bytearray, memoryview)):
            obj = io.BytesIO(obj)
            self._owned = True
        elif isinstance(obj, (str, os.PathLike)):
            logger.debug('opening path \'%s\'', obj)
            obj = open(obj, 'rb')
            self._owned = True
        elif isinstance(obj, Stream):
            obj = obj.obj
        elif not hasattr(obj, 'read') and not hasattr(obj, 'write'):
            raise InvalidArgumentException('\'%s\' cannot be used as a stream' % obj.__class__.__name__)

        self.obj = obj

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.obj)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        '''Close the underlying object only if it was opened by us.'''
        if self._owned:
            self.obj.close()

    @property
    def length(self) -> int:
        return stream_length(self.obj)

    @property
    def position(self) -> int:
        return self.obj.tell()

    @position.setter
    def position(self, value: int):
        self.obj.seek(value, io.SEEK_SET)

    def read_all(self) -> bytes:
        '''Returns all the data from the current position to the end.'''
        chunks = []
        while True:
            data = self.obj.read(io.DEFAULT_BUFFER_SIZE)
            if not data:
                break
            chunks.append(data)

        return b''.join(chunks)

    @contextmanager
    def preserve_position(self):
        '''Restore the position on exit, whatever happens inside.'''
        position = self.obj.tell()
        try:
            yield self
        finally:
            self.obj.seek(position, io.SEEK_SET)


class BoundedStream(io.RawIOBase):
    '''Wraps a stream into an isolated window starting at the current position
    of the stream.

    In READ mode the window has a fixed length (that can be changed only with
    move()); in WRITE mode the length is whatever has been written after the
    origin so far. Positions are relative to the origin of the window.

    Closing the window doesn't close the underlying stream.

    The writes are not limited by the window unless bounded_writes is set, in
    that case the length passed in WRITE mode is the hard limit.'''

    def __init__(self, stream, length=None, mode=WindowMode.READ, bounded_writes=False):
        if stream is None:
            raise InvalidArgumentException('the stream cannot be None')
        if length is not None and length < 0:
            raise InvalidArgumentException(f'negative length {length}')
        if mode == WindowMode.READ and length is None:
            raise InvalidArgumentException('a window for reading needs a length')

        super().__init__()

        self._base = stream
        self._mode = mode
        self._bounded_writes = bounded_writes
        self._origin = 0
        self._length = length

        if mode == WindowMode.READ:
            self.move(stream.tell(), length)
        else:
            self._origin = stream.tell()
            logger.debug('window for writing at 0x%x (limit=%s)', self._origin, length)

    def __repr__(self):
        return '<%s(origin=0x%x, mode=%s)>' % (self.__class__.__name__, self._origin, self._mode.name)

    def _check_disposed(self):
        if self.closed:
            raise DisposedException('I/O operation on a closed %s' % self.__class__.__name__)

    @property
    def base_stream(self):
        return self._base

    @property
    def mode(self) -> WindowMode:
        return self._mode

    @property
    def origin(self) -> int:
        return self._origin

    @property
    def length(self) -> int:
        self._check_disposed()
        if self._mode == WindowMode.READ:
            return self._length

        return stream_length(self._base) - self._origin

    @property
    def position(self) -> int:
        self._check_disposed()
        return self._base.tell() - self._origin

    @position.setter
    def position(self, value: int):
        self.seek(value, io.SEEK_SET)

    def move(self, origin: int, length: int):
        '''Moves the window to the new origin with the new length; only for READ mode.'''
        self._check_disposed()
        if self._mode != WindowMode.READ:
            raise UnsupportedException('a window for writing cannot be moved')
        if origin < 0 or length < 0:
            raise OutOfRangeException(f'invalid window at {origin} with length {length}')

        base_length = stream_length(self._base)
        if origin + length > base_length:
            raise OutOfRangeException(
                f'window 0x{origin:x}+0x{length:x} exceeds the stream length 0x{base_length:x}')

        self._origin = origin
        self._length = length
        self._base.seek(origin, io.SEEK_SET)

        logger.debug('window moved to 0x%x with length 0x%x', origin, length)

    def readable(self) -> bool:
        self._check_disposed()
        return self._mode == WindowMode.READ and self._base.readable()

    def writable(self) -> bool:
        self._check_disposed()
        return self._mode == WindowMode.WRITE and self._base.writable()

    def seekable(self) -> bool:
        self._check_disposed()
        return self._base.seekable()

    def tell(self) -> int:
        return self.position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_disposed()
        length = self.length

        if whence == io.SEEK_SET:
            target = self._origin + offset
        elif whence == io.SEEK_CUR:
            target = self._base.tell() + offset
        elif whence == io.SEEK_END:
            target = self._origin + length + offset
        else:
            raise InvalidArgumentException(f'invalid whence ({whence})')

        if target < self._origin:
            raise SeekBeforeBeginException(f'seek to {target - self._origin} is before the beginning of the window')
        if target > self._origin + length:
            raise SeekAfterEndException(f'seek to {target - self._origin} is after the end of the window ({length})')

        self._base.seek(target, io.SEEK_SET)

        return self.position

    def readinto(self, buffer) -> int:
        self._check_disposed()
        if self._mode != WindowMode.READ:
            raise UnsupportedException('the window is not for reading')

        remaining = self.length - self.position
        if remaining <= 0:
            return 0

        view = memoryview(buffer).cast('B')
        count = min(len(view), remaining)

        if hasattr(self._base, 'readinto'):
            return self._base.readinto(view[:count])

        data = self._base.read(count)
        view[:len(data)] = data

        return len(data)

    def write(self, buffer) -> int:
        self._check_disposed()
        if self._mode != WindowMode.WRITE:
            raise UnsupportedException('the window is not for writing')

        if self._bounded_writes and self._length is not None:
            size = memoryview(buffer).nbytes
            if self.position + size > self._length:
                raise OutOfRangeException(
                    f'writing {size} bytes at {self.position} exceeds the window limit {self._length}')

        return self._base.write(buffer)

    def truncate(self, size=None):
        raise UnsupportedException('the extent of a window cannot be modified')

    def flush(self):
        # also called on half-built instances when the constructor fails
        base = getattr(self, '_base', None)
        if not self.closed and base is not None and not getattr(base, 'closed', False):
            base.flush()


class Progress(namedtuple('Progress', ['position', 'length'])):
    __slots__ = ()

    @property
    def percentage(self) -> float:
        if self.length == 0:
            return 100.0

        return 100.0 * self.position / self.length


class ProgressStream(io.RawIOBase):
    '''Pass-through stream that reports the progress after each read/write.

    The callback can be a callable or an object with a report() method
    accepting a Progress.'''

    def __init__(self, stream, callback):
        if stream is None:
            raise InvalidArgumentException('the stream cannot be None')

        super().__init__()
        self._base = stream
        self._report = callback.report if hasattr(callback, 'report') else callback
        self._length = stream_length(stream)

    @property
    def base_stream(self):
        return self._base

    @property
    def length(self) -> int:
        return self._length

    def _notify(self):
        self._report(Progress(self._base.tell(), self._length))

    def readable(self) -> bool:
        return self._base.readable()

    def writable(self) -> bool:
        return self._base.writable()

    def seekable(self) -> bool:
        return self._base.seekable()

    def tell(self) -> int:
        return self._base.tell()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._base.seek(offset, whence)

    def readinto(self, buffer) -> int:
        if self.closed:
            raise DisposedException('I/O operation on a closed %s' % self.__class__.__name__)

        view = memoryview(buffer).cast('B')
        data = self._base.read(len(view))
        view[:len(data)] = data

        self._notify()

        return len(data)

    def write(self, buffer) -> int:
        if self.closed:
            raise DisposedException('I/O operation on a closed %s' % self.__class__.__name__)

        written = self._base.write(buffer)
        self._length = max(self._length, self._base.tell())

        self._notify()

        return written
