"""
A Field describes how a single member of a record is laid out: its name, its
width in bytes and its kind. Fields don't hold values, the values live in the
Struct instances; the actual conversion from/to bytes is in the codec module.
"""
import codecs
import copy
import logging
import struct
from functools import lru_cache
from typing import Optional

from .color import Color
from .enum import Compliant, FieldKind
from .meta import FieldBase, Endianess, ENDIANESS_PREFIX
from .exceptions import InvalidArgumentException


DEFAULT_ENCODING = 'utf-8'

# the default underlying type of an enumeration, like a C int
DEFAULT_ENUM_FORMAT = 'i'

# characters with a different encoded length in the variable-width encodings
_WIDTH_PROBES = ('A', 'é', '€', '\U0001f600')


@lru_cache()
def char_width(encoding: str) -> Optional[int]:
    '''Returns the number of bytes a single character takes in the given encoding,
    None if the encoding is variable-width.'''
    if ''.encode(encoding):  # a BOM comes before the characters
        return None

    widths = {len(probe.encode(encoding, errors='ignore')) for probe in _WIDTH_PROBES}
    widths.discard(0)  # characters not representable at all

    if len(widths) != 1:
        return None

    return widths.pop()


def field_encoding(encoding: str) -> str:
    '''Normalized name of an encoding usable inside a record: encodings that
    prepend a BOM (like 'utf-16') are refused, use the variant with the
    explicit byte order instead ('utf-16-le').'''
    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        raise InvalidArgumentException(f'unknown encoding \'{encoding}\'')

    if ''.encode(name):
        raise InvalidArgumentException(f'the encoding \'{name}\' writes a BOM before each string')

    return name


def enum_format(enum_cls) -> str:
    '''The struct format of the integer underlying an enumeration: it can be
    declared with the attribute __underlying__.'''
    return getattr(enum_cls, '__underlying__', DEFAULT_ENUM_FORMAT)


class Field(FieldBase):
    """Base class to subclass from"""

    kind: FieldKind = None

    def __init__(self, name=None, default=None, endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.NONE):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.default = default
        self.endianess = endianess
        self.compliant = compliant

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, self.name or '')

    def value_from_default(self):
        return copy.deepcopy(self.default)

    def is_compliant(self, level: Compliant) -> bool:
        return bool(self.compliant & level)

    def _get_size(self) -> Optional[int]:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    @property
    def is_fixed_size(self) -> bool:
        return self.size is not None

    def unpack(self, stream):
        from .codec import decode
        return decode(self, stream)

    def pack(self, value) -> bytes:
        from .codec import pack_field
        return pack_field(self, value)


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers and floats to/from bytes.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the integer value of the field itself;
    in that case the format is the one of the integer underlying the enumeration.
    """

    def __init__(self, format=None, default=0, enum=None, **kw):
        if format is None and enum is None:
            raise InvalidArgumentException('StructField needs a format or an enum')

        self.format = format if format is not None else enum_format(enum)
        self.enum = enum
        super().__init__(default=default, **kw)

        try:
            struct.calcsize(self.get_format())
        except struct.error as e:
            raise InvalidArgumentException(f'invalid format \'{self.format}\': {e}')

    @property
    def kind(self):
        return FieldKind.ENUM if self.enum else FieldKind.NUMERIC

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, self.format)

    def value_from_default(self):
        if not self.enum:
            return super().value_from_default()

        try:
            return self.enum(self.default)
        except ValueError:
            return self.default

    def get_format(self) -> str:
        return '%s%s' % (ENDIANESS_PREFIX[self.endianess], self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())


class BoolField(Field):
    '''A boolean stored in a single byte: zero is False, anything else is True.'''

    kind = FieldKind.BOOLEAN

    def __init__(self, default=False, **kw):
        super().__init__(default=default, **kw)

    def _get_size(self):
        return 1


class ColorField(Field):
    kind = FieldKind.COLOR

    def __init__(self, default=Color(0, 0, 0, 0), **kw):
        super().__init__(default=default, **kw)

    def _get_size(self):
        return 4


class BytesField(Field):
    """Represent a contiguous chunk of bytes of fixed length.

    If is_magic is set the default is the value expected when unpacking."""

    kind = FieldKind.FIXED_BYTES

    def __init__(self, n=None, is_magic=False, **kw):
        if n is None and kw.get('default') is None:
            raise InvalidArgumentException("BytesField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])
        self.is_magic = is_magic

        super().__init__(**kw)

        if self.default is not None and len(self.default) != self.length:
            raise InvalidArgumentException(f'default {self.default!r} is not {self.length} bytes long')

    def __repr__(self):
        return '<%s(%d)>' % (self.__class__.__name__, self.length)

    def value_from_default(self):
        return b'\x00' * self.length if self.default is None else self.default

    def _get_size(self):
        return self.length


class StringField(Field):
    """A string made of a fixed number of characters, right padded with the pad
    character when packed. The padding is not stripped when unpacking."""

    kind = FieldKind.FIXED_STRING

    def __init__(self, n, encoding=DEFAULT_ENCODING, pad='\0', **kw):
        if n < 0:
            raise InvalidArgumentException(f'negative length {n}')
        if len(pad) != 1:
            raise InvalidArgumentException('the pad must be a single character')

        self.length = n
        self.encoding = field_encoding(encoding)
        self.pad = pad
        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%d, %s)>' % (self.__class__.__name__, self.length, self.encoding)

    def __len__(self):
        return self.length

    def value_from_default(self):
        return self.pad * self.length if self.default is None else self.default

    def _get_size(self):
        width = char_width(self.encoding)

        return None if width is None else width * self.length


class CStringField(Field):
    """A string with no length prefix, ended by one of the terminators. When packed
    the first terminator is used."""

    kind = FieldKind.TERMINATED_STRING

    def __init__(self, terminators='\0', encoding=DEFAULT_ENCODING, default='', **kw):
        if not terminators:
            raise InvalidArgumentException('at least a terminator is needed')

        self.terminators = tuple(terminators)
        self.encoding = field_encoding(encoding)
        super().__init__(default=default, **kw)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, ''.join(self.terminators))

    @property
    def terminator(self):
        return self.terminators[0]

    def _get_size(self):
        return None


class ArrayField(Field):
    '''Un/Pack an array of n elements all described by the same field.'''

    kind = FieldKind.ARRAY

    def __init__(self, field: Field, n: int, **kw):
        if not isinstance(field, Field):
            raise InvalidArgumentException('field is \'%s\' must be a Field' % field.__class__.__name__)
        if n < 0:
            raise InvalidArgumentException(f'negative number of elements {n}')

        self.field = field
        self.n = n
        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.field!r}, n={self.n})>'

    def __len__(self):
        return self.n

    def value_from_default(self):
        if self.default is not None:
            return super().value_from_default()

        return [self.field.value_from_default() for _ in range(self.n)]

    def _get_size(self):
        size = self.field.size

        return None if size is None else size * self.n


class NestedField(Field):
    '''Embed a record into another one.'''

    kind = FieldKind.NESTED_STRUCT

    def __init__(self, struct_cls, **kw):
        self.struct_cls = struct_cls
        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.struct_cls.__name__})>'

    def value_from_default(self):
        if self.default is not None:
            return super().value_from_default()

        return self.struct_cls()

    def _get_size(self):
        return self.struct_cls.calcsize()
