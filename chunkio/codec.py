'''
# Struct codec

Stateless conversion between bytes and values described by fields.

Each kind of field has an unpacker and a packer; the dispatch happens in a
single place (unpack_field() and pack_field()) using the kind of the field.

    decode(ChunkHeader, stream)       # a Struct subclass
    decode(bool, b'\x01')             # True
    decode(Optional[Color], stream)   # the optional is resolved to Color
    decode(fields.StructField('Q', enum=Kind), stream)
    encode(header)

Strings are read character by character using the encoding of the field,
so the number of bytes consumed depends on the encoding.
'''
import codecs
import io
import logging
import struct
import types
import typing
from enum import Enum

from . import fields
from .color import Color
from .core import Struct
from .enum import Compliant, FieldKind
from .exceptions import (
    ChunkIOException,
    EndOfDataException,
    InvalidArgumentException,
    MagicException,
    UnpackException,
)
from .fields import DEFAULT_ENCODING
from .streams import Stream


logger = logging.getLogger(__name__)

_UNION_TYPES = tuple(_ for _ in (typing.Union, getattr(types, 'UnionType', None)) if _ is not None)


def _as_stream(stream):
    if stream is None:
        raise InvalidArgumentException('the stream cannot be None')

    if isinstance(stream, (bytes, bytearray, memoryview)):
        return Stream(stream)

    return stream


def read_exactly(stream, size: int) -> bytes:
    '''Read size bytes or raise EndOfDataException; short reads of the stream are retried.'''
    chunks = []
    remaining = size
    while remaining > 0:
        data = stream.read(remaining)
        if not data:
            break
        chunks.append(data)
        remaining -= len(data)

    data = b''.join(chunks)
    if len(data) != size:
        raise EndOfDataException(f'unable to read {size} bytes, only {len(data)} available')

    return data


class CharReader(object):
    '''Read one character at a time from a binary stream, consuming only the
    bytes that encode it.'''

    def __init__(self, stream, encoding=DEFAULT_ENCODING):
        self.stream = stream
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._pending = ''

    def read_char(self) -> str:
        while not self._pending:
            byte = self.stream.read(1)
            if not byte:
                raise EndOfDataException('unable to read beyond the end of the stream')
            try:
                self._pending = self._decoder.decode(byte)
            except UnicodeDecodeError as e:
                raise UnpackException(f'invalid {e.encoding} data: {e.reason}') from e

        char, self._pending = self._pending[0], self._pending[1:]

        return char


def read_string(stream, characters: int, encoding=DEFAULT_ENCODING) -> str:
    '''Read exactly the given number of characters.'''
    if characters < 0:
        raise InvalidArgumentException(f'negative number of characters {characters}')

    reader = CharReader(_as_stream(stream), encoding)

    return ''.join(reader.read_char() for _ in range(characters))


def read_terminated_string(stream, terminators='\0', encoding=DEFAULT_ENCODING) -> str:
    '''Read until one of the terminators is found: it is consumed but not returned.'''
    if not terminators:
        raise InvalidArgumentException('at least a terminator is needed')

    reader = CharReader(_as_stream(stream), encoding)
    buffer = []
    while True:
        char = reader.read_char()
        if char in terminators:
            break
        buffer.append(char)

    return ''.join(buffer)


def _read_7bit_int(stream) -> int:
    value = 0
    shift = 0
    while True:
        byte = read_exactly(stream, 1)[0]
        value |= (byte & 0x7f) << shift
        if not byte & 0x80:
            return value
        shift += 7
        if shift > 35:
            raise UnpackException('bad format for the 7 bit encoded length')


def _encode_7bit_int(value: int) -> bytes:
    data = bytearray()
    while value >= 0x80:
        data.append((value & 0x7f) | 0x80)
        value >>= 7
    data.append(value)

    return bytes(data)


def read_prefixed_string(stream, encoding=DEFAULT_ENCODING) -> str:
    '''Read a string prefixed by its length in bytes encoded 7 bits at a time.'''
    stream = _as_stream(stream)
    length = _read_7bit_int(stream)

    try:
        return read_exactly(stream, length).decode(encoding)
    except UnicodeDecodeError as e:
        raise UnpackException(f'invalid {e.encoding} data: {e.reason}') from e


def _check_string(value):
    if value is None:
        raise InvalidArgumentException('the value cannot be None')
    if not isinstance(value, str):
        raise InvalidArgumentException('expected a string, not \'%s\'' % value.__class__.__name__)


def _fixed_string_bytes(value: str, width: int, pad: str, encoding: str) -> bytes:
    _check_string(value)
    if len(value) > width:
        raise InvalidArgumentException(f'the length of {value!r} exceeds the fixed length {width}')

    return value.ljust(width, pad).encode(encoding)


def write_string(stream, value: str, length_prefixed=False, encoding=DEFAULT_ENCODING) -> int:
    '''Write the characters as they are, or prefixed by their length in bytes.'''
    _check_string(value)
    raw = value.encode(encoding)
    if length_prefixed:
        raw = _encode_7bit_int(len(raw)) + raw

    return stream.write(raw)


def write_fixed_string(stream, value: str, width: int, pad='\0', encoding=DEFAULT_ENCODING) -> int:
    '''Write exactly width characters, padding the value on the right.'''
    return stream.write(_fixed_string_bytes(value, width, pad, encoding))


def write_terminated_string(stream, value: str, terminator='\0', encoding=DEFAULT_ENCODING) -> int:
    '''Write the characters followed by the terminator. A terminator inside the
    value is not escaped.'''
    _check_string(value)

    return stream.write((value + terminator).encode(encoding))


def _unpack_numeric(field, stream):
    return struct.unpack(field.get_format(), read_exactly(stream, field.size))[0]


def _unpack_enum(field, stream):
    value = _unpack_numeric(field, stream)
    try:
        return field.enum(value)
    except ValueError:
        if field.is_compliant(Compliant.ENUM):
            raise UnpackException(f'{value!r} is not a member of {field.enum.__name__}')

        logger.warning('enum %s doesn\'t have element with value %r in it', field.enum.__name__, value)

        return value


def _unpack_boolean(field, stream):
    return read_exactly(stream, 1)[0] != 0


def _unpack_color(field, stream):
    return Color(*read_exactly(stream, 4))


def _unpack_bytes(field, stream):
    value = read_exactly(stream, field.size)

    if field.is_magic and value != field.value_from_default():
        logger.warning('the magic for field \'%s\' doesn\'t correspond: %r', field.name, value)
        if field.is_compliant(Compliant.MAGIC):
            raise MagicException(f'expected {field.value_from_default()!r}, found {value!r}')

    return value


def _unpack_nested(field, stream):
    struct_cls = field.struct_cls
    size = struct_cls.calcsize()

    # with a fixed layout the whole record is read at once
    if size is not None:
        stream = io.BytesIO(read_exactly(stream, size))

    values = {}
    for name, subfield in struct_cls.get_fields():
        logger.debug('unpacking %s.%s', struct_cls.__name__, name)
        try:
            values[name] = unpack_field(subfield, stream)
        except ChunkIOException as e:
            e.chain.append(name)
            raise

    return struct_cls(**values)


def _unpack_array(field, stream):
    elements = []
    for idx in range(field.n):
        try:
            elements.append(unpack_field(field.field, stream))
        except ChunkIOException as e:
            e.chain.append(str(idx))
            raise

    return elements


def _unpack_fixed_string(field, stream):
    return read_string(stream, field.length, field.encoding)


def _unpack_terminated_string(field, stream):
    return read_terminated_string(stream, field.terminators, field.encoding)


_UNPACKERS = {
    FieldKind.NUMERIC:           _unpack_numeric,
    FieldKind.ENUM:              _unpack_enum,
    FieldKind.BOOLEAN:           _unpack_boolean,
    FieldKind.COLOR:             _unpack_color,
    FieldKind.FIXED_BYTES:       _unpack_bytes,
    FieldKind.NESTED_STRUCT:     _unpack_nested,
    FieldKind.ARRAY:             _unpack_array,
    FieldKind.FIXED_STRING:      _unpack_fixed_string,
    FieldKind.TERMINATED_STRING: _unpack_terminated_string,
}


def unpack_field(field, stream):
    return _UNPACKERS[field.kind](field, stream)


def _pack_numeric(field, value):
    try:
        return struct.pack(field.get_format(), value)
    except struct.error as e:
        raise InvalidArgumentException(f'cannot pack {value!r} with format \'{field.format}\': {e}')


def _pack_enum(field, value):
    return _pack_numeric(field, value.value if isinstance(value, Enum) else value)


def _pack_boolean(field, value):
    return b'\x01' if value else b'\x00'


def _pack_color(field, value):
    if isinstance(value, str):
        value = Color.from_name(value)
    elif not isinstance(value, Color):
        value = Color(*value)

    try:
        return bytes(value)
    except ValueError as e:
        raise InvalidArgumentException(f'invalid color {value!r}: {e}')


def _pack_bytes(field, value):
    value = bytes(value)
    if len(value) != field.length:
        raise InvalidArgumentException(f'{value!r} must be {field.length} bytes long')

    return value


def _pack_nested(field, value):
    if not isinstance(value, field.struct_cls):
        raise InvalidArgumentException('expected \'%s\', not \'%s\'' % (
            field.struct_cls.__name__,
            value.__class__.__name__,
        ))

    raw = []
    for name, subfield in value.get_fields():
        logger.debug('packing %s.%s', field.struct_cls.__name__, name)
        try:
            raw.append(pack_field(subfield, getattr(value, name)))
        except ChunkIOException as e:
            e.chain.append(name)
            raise

    return b''.join(raw)


def _pack_array(field, value):
    if len(value) != field.n:
        raise InvalidArgumentException(f'expected {field.n} elements, not {len(value)}')

    return b''.join(pack_field(field.field, _) for _ in value)


def _pack_fixed_string(field, value):
    return _fixed_string_bytes(value, field.length, field.pad, field.encoding)


def _pack_terminated_string(field, value):
    _check_string(value)

    return (value + field.terminator).encode(field.encoding)


_PACKERS = {
    FieldKind.NUMERIC:           _pack_numeric,
    FieldKind.ENUM:              _pack_enum,
    FieldKind.BOOLEAN:           _pack_boolean,
    FieldKind.COLOR:             _pack_color,
    FieldKind.FIXED_BYTES:       _pack_bytes,
    FieldKind.NESTED_STRUCT:     _pack_nested,
    FieldKind.ARRAY:             _pack_array,
    FieldKind.FIXED_STRING:      _pack_fixed_string,
    FieldKind.TERMINATED_STRING: _pack_terminated_string,
}


def pack_field(field, value) -> bytes:
    if value is None:
        raise InvalidArgumentException('cannot pack None for %r' % field)

    return _PACKERS[field.kind](field, value)


def field_for_type(type_) -> fields.Field:
    '''Find the field able to decode the given type. Optional types are
    resolved to the type they wrap.'''
    if isinstance(type_, fields.Field):
        return type_

    if typing.get_origin(type_) in _UNION_TYPES:
        args = [_ for _ in typing.get_args(type_) if _ is not type(None)]
        if len(args) != 1:
            raise InvalidArgumentException(f'cannot decode the union {type_!r}')
        return field_for_type(args[0])

    if isinstance(type_, str):
        return fields.StructField(type_)

    if type_ is bool:
        return fields.BoolField()

    if isinstance(type_, type):
        if issubclass(type_, Color):
            return fields.ColorField()
        if issubclass(type_, Struct):
            return fields.NestedField(type_)
        if issubclass(type_, Enum):
            return fields.StructField(enum=type_)

    raise InvalidArgumentException(f'don\'t know how to decode {type_!r}')


def field_for_value(value) -> fields.Field:
    '''Find the field able to encode the given value.'''
    if value is None:
        raise InvalidArgumentException('cannot encode None')

    if isinstance(value, bool):
        return fields.BoolField()
    if isinstance(value, Color):
        return fields.ColorField()
    if isinstance(value, Enum):
        return fields.StructField(enum=type(value))
    if isinstance(value, Struct):
        return fields.NestedField(type(value))
    if isinstance(value, (bytes, bytearray)):
        return fields.BytesField(len(value))

    raise InvalidArgumentException('cannot infer the layout of \'%s\'' % value.__class__.__name__)


def decode(type_, stream):
    '''Read a value of the given type from the stream (or bytes).'''
    field = field_for_type(type_)
    logger.debug('decoding %r', field)

    return unpack_field(field, _as_stream(stream))


def encode(value) -> bytes:
    '''Encode a value: lists and tuples are encoded element by element.'''
    if isinstance(value, (list, tuple)) and not isinstance(value, Color):
        return b''.join(encode(_) for _ in value)

    return pack_field(field_for_value(value), value)
