import io

import pytest

from chunkio.enum import WindowMode
from chunkio.exceptions import (
    DisposedException,
    InvalidArgumentException,
    OutOfRangeException,
    SeekAfterEndException,
    SeekBeforeBeginException,
    UnsupportedException,
)
from chunkio.streams import BoundedStream, ProgressStream, Stream, stream_length


def test_stream_starts_at_start(data_stream):
    length = 200

    with BoundedStream(data_stream, length) as s:
        assert s.position == 0, 'a window starts at 0'
        assert s.base_stream.tell() == 0
        assert s.length == length


def test_stream_starts_in_middle(data_stream):
    data_stream.seek(100)

    with BoundedStream(data_stream, 200) as s:
        assert s.position == 0
        assert s.origin == 100
        assert s.base_stream.tell() == 100
        assert s.length == 200


def test_window_must_fit():
    with pytest.raises(OutOfRangeException):
        BoundedStream(io.BytesIO(b'\x00' * 10), 11)

    with pytest.raises(InvalidArgumentException):
        BoundedStream(None, 1)


def test_seek_from_begin(data_stream):
    origin = 512
    length = 400
    data_stream.seek(origin)

    s = BoundedStream(data_stream, length)

    with pytest.raises(SeekBeforeBeginException):
        s.seek(-10, io.SEEK_SET)
    assert s.position == 0, 'position should not have changed'
    assert data_stream.tell() == origin

    assert s.seek(50, io.SEEK_SET) == 50
    assert data_stream.tell() == origin + 50

    s.seek(100, io.SEEK_SET)
    assert s.position == 100

    with pytest.raises(SeekAfterEndException):
        s.seek(length + 50, io.SEEK_SET)
    assert s.position == 100
    assert data_stream.tell() == origin + 100


def test_seek_boundaries(data_stream):
    length = 16
    s = BoundedStream(data_stream, length)

    with pytest.raises(OutOfRangeException):
        s.seek(-1)
    with pytest.raises(OutOfRangeException):
        s.seek(length + 1)

    assert s.seek(length) == length
    assert s.read(10) == b''


def test_seek_from_current(data_stream):
    origin = 512
    length = 400
    data_stream.seek(origin)

    s = BoundedStream(data_stream, length)

    with pytest.raises(SeekBeforeBeginException):
        s.seek(-10, io.SEEK_CUR)
    assert s.position == 0

    s.seek(50, io.SEEK_CUR)
    assert s.position == 50
    s.seek(70, io.SEEK_CUR)
    assert s.position == 120
    s.seek(-20, io.SEEK_CUR)
    assert s.position == 100
    assert data_stream.tell() == origin + 100

    with pytest.raises(SeekAfterEndException):
        s.seek(length + 50, io.SEEK_CUR)
    assert s.position == 100


def test_seek_from_end(data_stream):
    origin = 512
    length = 400
    data_stream.seek(origin)

    s = BoundedStream(data_stream, length)

    with pytest.raises(SeekAfterEndException):
        s.seek(10, io.SEEK_END)
    assert s.position == 0

    s.seek(-50, io.SEEK_END)
    assert s.position == length - 50
    assert data_stream.tell() == origin + length - 50

    with pytest.raises(SeekBeforeBeginException):
        s.seek(-(length + 50), io.SEEK_END)
    assert s.position == length - 50


def test_position_setter(data_stream):
    s = BoundedStream(data_stream, 10)

    s.position = 4
    assert s.read(2) == b'\x04\x05'

    with pytest.raises(OutOfRangeException):
        s.position = 11


def test_read_is_clamped(data_stream):
    data_stream.seek(10)
    s = BoundedStream(data_stream, 5)

    assert s.read(100) == bytes(range(10, 15))
    assert s.read(1) == b''

    s.seek(0)
    assert s.read() == bytes(range(10, 15))

    buffer = bytearray(8)
    s.seek(3)
    assert s.readinto(buffer) == 2
    assert buffer[:2] == b'\x0d\x0e'


def test_nested_windows(data_stream):
    outer = BoundedStream(data_stream, 100)
    outer.seek(10)
    inner = BoundedStream(outer, 20)

    assert inner.length == 20
    assert inner.read() == bytes(range(10, 30))
    assert outer.position == 30

    with pytest.raises(OutOfRangeException):
        BoundedStream(outer, 100)


def test_move(data_stream):
    s = BoundedStream(data_stream, 10)

    with pytest.raises(OutOfRangeException):
        s.move(0, 1025)

    s.move(100, 24)

    assert data_stream.tell() == 100
    assert s.origin == 100
    assert s.length == 24
    assert s.position == 0
    assert s.read(2) == b'\x64\x65'


def test_write_mode():
    base = io.BytesIO()
    base.write(b'head')

    s = BoundedStream(base, mode=WindowMode.WRITE)

    assert s.writable()
    assert not s.readable()
    assert s.length == 0

    assert s.write(b'abc') == 3
    assert s.length == 3
    assert s.position == 3
    assert base.getvalue() == b'headabc'

    s.seek(1)
    s.write(b'B')
    assert base.getvalue() == b'headaBc'
    assert s.length == 3

    with pytest.raises(UnsupportedException):
        s.move(0, 1)
    with pytest.raises(UnsupportedException):
        s.read(1)


def test_write_is_unbounded_by_default():
    base = io.BytesIO()
    s = BoundedStream(base, 2, mode=WindowMode.WRITE)

    assert s.write(b'abcdef') == 6
    assert base.getvalue() == b'abcdef'


def test_bounded_writes():
    base = io.BytesIO()
    s = BoundedStream(base, 4, mode=WindowMode.WRITE, bounded_writes=True)

    s.write(b'abc')
    with pytest.raises(OutOfRangeException):
        s.write(b'de')

    assert base.getvalue() == b'abc'
    s.write(b'd')
    assert base.getvalue() == b'abcd'


def test_read_mode_is_not_writable(data_stream):
    s = BoundedStream(data_stream, 10)

    assert not s.writable()
    with pytest.raises(UnsupportedException):
        s.write(b'\x00')


def test_truncate(data_stream):
    s = BoundedStream(data_stream, 10)

    with pytest.raises(UnsupportedException):
        s.truncate(5)


def test_close_keeps_base_open(data_stream):
    s = BoundedStream(data_stream, 10)
    s.close()

    assert s.closed
    assert not data_stream.closed

    with pytest.raises(DisposedException):
        s.length
    with pytest.raises(DisposedException):
        s.seek(0)


def test_stream_wrapper(tmp_path):
    data = b'\x01\x02\x03\x04\x05'

    stream = Stream(data)
    assert stream.read(1) == b'\x01'
    assert stream.read(1) == b'\x02'
    assert stream.read_all() == b'\x03\x04\x05'
    assert stream.position == 5
    assert stream.length == 5

    path = tmp_path / 'data.bin'
    path.write_bytes(data)

    with Stream(path) as stream:
        stream.position = 3
        with stream.preserve_position():
            assert stream.read_all() == b'\x04\x05'
        assert stream.position == 3

    assert stream.closed

    with pytest.raises(InvalidArgumentException):
        Stream(42)


def test_stream_length_keeps_position(data_stream):
    data_stream.seek(10)

    assert stream_length(data_stream) == 1024
    assert data_stream.tell() == 10


class ProgressReporter:

    def __init__(self):
        self.callback_count = 0
        self.last_percentage = 0.0

    def report(self, progress):
        self.callback_count += 1
        self.last_percentage = progress.percentage


def _read_all_by_ten(stream):
    buffer = bytearray(10)
    while stream.readinto(buffer) > 0:
        pass


def test_progress_via_callable():
    reported = []

    with ProgressStream(io.BytesIO(b'\x00' * 1000), reported.append) as stream:
        assert reported == []
        _read_all_by_ten(stream)

    assert len(reported) > 0
    assert reported[-1].percentage == 100.0
    assert reported[-1].position == 1000


def test_progress_via_report():
    reporter = ProgressReporter()

    with ProgressStream(io.BytesIO(b'\x00' * 1000), reporter) as stream:
        assert reporter.callback_count == 0
        _read_all_by_ten(stream)

    assert reporter.callback_count > 0
    assert reporter.last_percentage == 100.0


def test_progress_on_write():
    reported = []
    stream = ProgressStream(io.BytesIO(), reported.append)

    stream.write(b'abcd')

    assert reported[-1].position == 4
    assert reported[-1].percentage == 100.0
