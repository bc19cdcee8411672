import io
import logging
import struct
from contextlib import contextmanager
from pathlib import Path

from .meta import Endianess
from .exceptions import StreamException, UnpackException


logger = logging.getLogger(__name__)


_INT_FORMATS = {
    1: 'b',
    2: 'h',
    4: 'i',
    8: 'q',
}


def get_struct_format(fmt, endianess=Endianess.LITTLE_ENDIAN):
    return '%s%s' % ('<' if endianess == Endianess.LITTLE_ENDIAN else '>', fmt)


class Stream(object):
    '''This is a simple wrapper around an in-memory buffer to uniform the way
    the formats move around it: absolute seeks with the possibility to come
    back to where we were, reads that fail loudly when the data is not there
    and a bunch of helpers for integers and strings.

    The whole content is always kept in memory, a path is read at once.'''
    def __init__(self, obj=b''):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self.obj = obj
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' is the wrong kind of object to build a stream from' % obj.__class__.__name__)

        init_method()

    def __repr__(self):
        return '<%s(position=%d, length=%d)>' % (self.__class__.__name__, self.tell(), len(self))

    def __len__(self):
        with self.obj.getbuffer() as view:
            return view.nbytes

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        with open(self.obj, 'rb') as f:
            self.obj = io.BytesIO(f.read())

    def init_PosixPath(self):
        self.obj = str(self.obj)
        self.init_str()

    init_WindowsPath = init_PosixPath

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def close(self):
        self.obj.close()

    def tell(self) -> int:
        return self.obj.tell()

    def seek(self, offset: int):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        if offset < 0 or offset > len(self):
            raise StreamException('offset 0x%x is outside the stream (length 0x%x)' % (offset, len(self)))

        self.obj.seek(offset)

        return self

    def getvalue(self) -> bytes:
        return self.obj.getvalue()

    def read(self, size: int) -> bytes:
        position = self.tell()
        data = self.obj.read(size)

        if len(data) != size:
            self.obj.seek(position)
            raise UnpackException('trying to read %d bytes at 0x%x but only %d are available' % (
                size, position, len(data)))

        return data

    def read_all(self) -> bytes:
        return self.obj.read()

    def write(self, data: bytes) -> int:
        return self.obj.write(data)

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)

    @contextmanager
    def at(self, offset: int):
        '''Move temporarily to the given offset, the original position
        is restored whatever happens in the block.'''
        self.save()
        try:
            self.seek(offset)
            yield self
        finally:
            self.restore()

    def read_at(self, offset: int, func):
        with self.at(offset):
            return func(self)

    def write_at(self, offset: int, func):
        with self.at(offset):
            return func(self)

    def peek(self, func):
        return self.read_at(self.tell(), func)

    def read_struct(self, fmt: str, endianess=Endianess.LITTLE_ENDIAN):
        fmt = get_struct_format(fmt, endianess)
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]

    def write_struct(self, fmt: str, value, endianess=Endianess.LITTLE_ENDIAN) -> int:
        return self.write(struct.pack(get_struct_format(fmt, endianess), value))

    def read_int(self, size: int, signed=False, endianess=Endianess.LITTLE_ENDIAN) -> int:
        fmt = _INT_FORMATS[size]
        return self.read_struct(fmt if signed else fmt.upper(), endianess=endianess)

    def write_int(self, value: int, size: int, signed=False, endianess=Endianess.LITTLE_ENDIAN) -> int:
        fmt = _INT_FORMATS[size]
        return self.write_struct(fmt if signed else fmt.upper(), value, endianess=endianess)

    def read_uint8(self):
        return self.read_int(1)

    def read_uint16(self, endianess=Endianess.LITTLE_ENDIAN):
        return self.read_int(2, endianess=endianess)

    def read_uint32(self, endianess=Endianess.LITTLE_ENDIAN):
        return self.read_int(4, endianess=endianess)

    def read_uint64(self, endianess=Endianess.LITTLE_ENDIAN):
        return self.read_int(8, endianess=endianess)

    def read_int32(self, endianess=Endianess.LITTLE_ENDIAN):
        return self.read_int(4, signed=True, endianess=endianess)

    def read_int64(self, endianess=Endianess.LITTLE_ENDIAN):
        return self.read_int(8, signed=True, endianess=endianess)

    def write_uint8(self, value):
        return self.write_int(value, 1)

    def write_uint16(self, value, endianess=Endianess.LITTLE_ENDIAN):
        return self.write_int(value, 2, endianess=endianess)

    def write_uint32(self, value, endianess=Endianess.LITTLE_ENDIAN):
        return self.write_int(value, 4, endianess=endianess)

    def write_uint64(self, value, endianess=Endianess.LITTLE_ENDIAN):
        return self.write_int(value, 8, endianess=endianess)

    def write_int32(self, value, endianess=Endianess.LITTLE_ENDIAN):
        return self.write_int(value, 4, signed=True, endianess=endianess)

    def write_int64(self, value, endianess=Endianess.LITTLE_ENDIAN):
        return self.write_int(value, 8, signed=True, endianess=endianess)

    def read_float(self, endianess=Endianess.LITTLE_ENDIAN) -> float:
        return self.read_struct('f', endianess=endianess)

    def write_float(self, value: float, endianess=Endianess.LITTLE_ENDIAN) -> int:
        return self.write_struct('f', value, endianess=endianess)

    def read_cstring(self, encoding='utf-8') -> str:
        '''Read bytes up to the first NUL, the terminator is consumed but not returned.'''
        data = bytearray()
        while (b := self.read(1)) != b'\x00':
            data += b

        return data.decode(encoding)

    def write_cstring(self, value: str, encoding='utf-8') -> int:
        raw = value.encode(encoding)
        self.write(raw + b'\x00')

        return len(raw) + 1

    def align(self, alignment: int) -> int:
        '''Pad with zeros up to the next multiple of alignment, it returns
        the number of bytes written.'''
        remainder = self.tell() % alignment
        if remainder == 0:
            return 0

        return self.write(b'\x00' * (alignment - remainder))
