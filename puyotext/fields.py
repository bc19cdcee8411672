"""
The leaves of the records: integers, floats, fixed-size byte strings and the
pointers of the relocatable containers. A field knows its size without looking
at its neighbours.
"""
import logging
import struct
from enum import Enum

from .enum import Compliant
from .meta import FieldBase, Endianess
from .streams import Stream, get_struct_format
from .exceptions import UnpackException, MagicException, FormatException


logger = logging.getLogger(__name__)


class Field(FieldBase):
    """Something with a value, a raw representation, a size and an offset."""

    def __init__(self, *, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def is_compliant(self, level):
        '''Returns the compliant'''
        instance = self
        while instance:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    def _set_raw(self, value) -> None:
        raise NotImplementedError(f"method {self.__class__.__name__}._set_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
        fset=lambda self, value: self._set_raw(value),
    )

    def relayout(self, offset=0):
        self.offset = offset

        return self.size

    def pack(self, stream=None):
        '''Write the binary representation at the current position of the stream
        (a new one if not passed), it returns the stream.'''
        stream = Stream(b'') if stream is None else stream
        stream.write(self.raw)

        return stream

    def unpack(self, stream):
        self.offset = stream.tell()
        self.raw = stream.read(self.size)

    def _check_magic(self, value):
        if self.is_magic and value != self.default:
            logger.warning('the magic for field \'%s\' doesn\'t correspond: %r' % (self.name, value))
            if self.is_compliant(Compliant.MAGIC):
                raise MagicException('expected %r, found %r' % (self.default, value), chain=[self.name])


class StructField(Field):
    """
    A number packed with a struct format (without the endianess prefix).

    With "enum" the value is a member of that Enum; the values outside of it
    are kept as plain integers unless Compliant.ENUM is requested.
    """

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def __repr__(self):
        if self.enum and isinstance(self.value, Enum):
            return f'<{self.__class__.__name__}({self.value!r})>'

        encoder = hex if isinstance(self.value, int) else repr
        return '<%s(%s)>' % (self.__class__.__name__, encoder(self.value))

    def value_from_default(self):
        if not self.enum or isinstance(self.default, self.enum):
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return get_struct_format(self.format, self.endianess)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        value = self.value.value if isinstance(self.value, Enum) else self.value
        try:
            return struct.pack(self.get_format(), value)
        except struct.error as e:
            raise FormatException('field \'%s\' cannot hold %r: %s' % (self.name, value, e))

    def _set_raw(self, raw: bytes) -> None:
        self.value = self._unpack(raw)

    def _unpack_struct(self, raw: bytes):
        try:
            return struct.unpack(self.get_format(), raw)[0]
        except struct.error as e:
            logger.error(e)
            raise UnpackException(str(e), chain=[self.name] if self.name else [])

    def _unpack_enum(self, value: int):
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise FormatException(
                    'enum %s doesn\'t have element with value 0x%x in it' % (self.enum.__name__, value),
                    chain=[self.name] if self.name else [])

            logger.warning(f'enum {self.enum!r} doesn\'t have element with value 0x{value:x} in it')

            return value

    def _unpack(self, raw):
        value = self._unpack_struct(raw)
        if self.enum:
            value = self._unpack_enum(value)

        self._check_magic(value)

        return value


class StringField(Field):
    """Represent a contiguous chunk of bytes with a fixed length."""

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"StringField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def value_from_default(self):
        return b'\x00' * self.length if not self.default else self.default

    def _get_size(self):
        return self.length

    def _get_raw(self) -> bytes:
        if len(self.value) != self.length:
            raise ValueError(f'field \'{self.name}\' can only hold binary strings of length {self.length}')

        return self.value

    def _set_raw(self, raw: bytes) -> None:
        if len(raw) != self.length:
            raise UnpackException(f'field \'{self.name}\' needs {self.length} bytes, {len(raw)} given',
                                  chain=[self.name] if self.name else [])

        self._check_magic(raw)
        self.value = raw


class PointerField(StructField):
    """
    A 64-bit offset relative to a base position, zero is the null pointer.

    The containers with an offset table list the position of every pointer in
    it; relocate_null tells if the pointer must be listed also when null.
    """
    is_pointer = True

    def __init__(self, base=0, relocate_null=True, **kw):
        self.base = base
        self.relocate_null = relocate_null
        super().__init__('q', **kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, hex(self.target) if self.target is not None else 'NULL')

    def _get_target(self):
        return None if self.value == 0 else self.value + self.base

    def _set_target(self, position):
        self.value = 0 if position is None else position - self.base

    target = property(
        fget=lambda self: self._get_target(),
        fset=lambda self, position: self._set_target(position),
    )

    def is_relocated(self) -> bool:
        return self.relocate_null or self.value != 0
