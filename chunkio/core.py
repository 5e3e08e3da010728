"""
Core module for the description of fixed-layout records.

A record is a class deriving from Struct whose attributes are fields: the
order of declaration is the order of the data on disk and the fields are
packed back-to-back with no padding between them.

    class ChunkHeader(Struct):
        id   = fields.BytesField(4)
        size = fields.StructField('I')

    header = ChunkHeader.unpack(stream)
    header.size = 0x10
    raw = header.pack()
"""
from typing import Tuple, List, Dict, Optional

from .fields import Field
from .meta import MetaStruct
from .exceptions import InvalidArgumentException


class Struct(metaclass=MetaStruct):
    """Base class of the records: the values of the fields can be passed by keyword,
    the missing ones take the default of the field."""

    def __init__(self, **kwargs):
        unknown = set(kwargs) - set(self.get_ordered_fields_name())
        if unknown:
            raise InvalidArgumentException('unknown fields for \'%s\': %s' % (
                self.__class__.__name__,
                ', '.join(sorted(unknown)),
            ))

        for name, value in kwargs.items():
            setattr(self, name, value)

    @classmethod
    def get_ordered_fields_name(cls) -> List[str]:
        return cls._meta.fields

    @classmethod
    def get_fields(cls) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, field) for each field.'''
        return [(_, getattr(cls, _)) for _ in cls.get_ordered_fields_name()]

    @classmethod
    def calcsize(cls) -> Optional[int]:
        '''The size is derived from the fields; it's None if some field has not a fixed size.'''
        size = 0
        for _, field in cls.get_fields():
            if field.size is None:
                return None
            size += field.size

        return size

    @classmethod
    def layout(cls) -> Dict[str, Tuple[int, Optional[int]]]:
        '''Offset and size of each field; after the first variable sized field
        the offsets are unknown.'''
        result = {}
        offset = 0
        for name, field in cls.get_fields():
            result[name] = (offset, field.size)
            if offset is not None and field.size is not None:
                offset += field.size
            else:
                offset = None

        return result

    def values(self) -> Tuple:
        return tuple(getattr(self, _) for _ in self.get_ordered_fields_name())

    def as_dict(self) -> Dict:
        return {_: getattr(self, _) for _ in self.get_ordered_fields_name()}

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented

        return self.values() == other.values()

    def __repr__(self):
        msg = []
        for field_name in self.get_ordered_fields_name():
            msg.append('%s=%r' % (field_name, getattr(self, field_name)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def __str__(self):
        msg = ''
        for field_name in self.get_ordered_fields_name():
            msg += '%s: %r\n' % (field_name, getattr(self, field_name))
        return msg

    @classmethod
    def unpack(cls, stream):
        '''Build an instance reading it from the stream (or bytes); the stream is
        advanced by the size of the record.'''
        from .codec import decode
        return decode(cls, stream)

    def pack(self, stream=None) -> bytes:
        '''Encode the record; if a stream is passed the data is also written to it.'''
        from .codec import encode
        raw = encode(self)

        if stream is not None:
            stream.write(raw)

        return raw

    @property
    def raw(self) -> bytes:
        return self.pack()
