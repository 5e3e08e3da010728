from enum import Enum, Flag, auto


class Compliant(Flag):
    '''It indicates which degree of compliantness the data must reflect the format'''
    NONE  = 0
    ENUM  = 1 << 0
    MAGIC = 1 << 1


class FieldKind(Enum):
    '''The closed set of kinds a field can be decoded as.'''
    NUMERIC           = auto()
    BOOLEAN           = auto()
    FIXED_BYTES       = auto()
    COLOR             = auto()
    ENUM              = auto()
    NESTED_STRUCT     = auto()
    ARRAY             = auto()
    FIXED_STRING      = auto()
    TERMINATED_STRING = auto()


class WindowMode(Enum):
    READ  = auto()
    WRITE = auto()
