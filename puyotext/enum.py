from enum import Enum, Flag


class Compliant(Flag):
    '''It indicates which degree of compliantness the data must reflect the format'''
    NONE    = 0
    ENUM    = 1 << 0
    MAGIC   = 1 << 1
    INHERIT = 1 << 2
    MARKUP  = 1 << 3


class Width(Enum):
    '''Size of the offsets stored in a container.

    The value is the number of bytes, the members know how to read and
    write a signed offset of their size.'''
    WIDTH32 = 4
    WIDTH64 = 8

    @property
    def size(self):
        return self.value

    def read(self, stream) -> int:
        return stream.read_int(self.value, signed=True)

    def write(self, stream, value: int) -> None:
        stream.write_int(value, self.value, signed=True)

    def peek(self, stream) -> int:
        return stream.peek(self.read)
