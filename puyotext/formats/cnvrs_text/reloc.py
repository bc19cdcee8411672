'''
# Offset table

At the end of a BINA container there is the list of the positions of all the
pointers inside the DATA section, so that the runtime can relocate them. Each
position is stored as the distance from the previous one (the first from the
start of the data), in units of 4 bytes, with a variable length encoding where
the first two bits of the first byte tell the size

    01xxxxxx                             6 bits
    10xxxxxx xxxxxxxx                   14 bits
    11xxxxxx xxxxxxxx xxxxxxxx xxxxxxxx 30 bits

the multi-byte forms are big-endian, whatever is the endianess of the file.
The table ends with zero bytes (padding to 4).
'''
import logging
from typing import Iterable, List

from bitstring import BitStream, ConstBitStream, ReadError

from ...exceptions import FormatException


logger = logging.getLogger(__name__)


TAG_BITS = 2

_SIZES = [
    # tag, bits for the value
    (0b01, 6),
    (0b10, 14),
    (0b11, 30),
]


def encode_delta(delta: int) -> bytes:
    '''Encode a distance already divided by 4.'''
    for tag, bits in _SIZES:
        if delta < (1 << bits):
            return BitStream(f'uint:{TAG_BITS}={tag}, uint:{bits}={delta}').bytes

    raise FormatException(f'the distance {delta:#x} cannot be stored in the offset table')


def encode_offsets(positions: Iterable[int], base: int) -> bytes:
    '''Build the table for the given pointer positions (absolute and in
    the order they were written).'''
    data = BitStream()
    previous = base

    for position in positions:
        distance = position - previous
        if distance < 0 or distance % 4:
            raise FormatException(f'pointer at {position:#x} is not after {previous:#x} or not aligned to 4')

        data.append(encode_delta(distance >> 2))
        previous = position

    return data.bytes


def decode_offsets(data: bytes, base: int) -> List[int]:
    '''Inverse of encode_offsets(): it stops at the first zero tag.'''
    stream = ConstBitStream(data)
    sizes = dict(_SIZES)
    positions = []
    position = base

    try:
        while stream.pos < stream.len:
            tag = stream.read(f'uint:{TAG_BITS}')
            if tag == 0:
                break

            position += stream.read(f'uint:{sizes[tag]}') << 2
            positions.append(position)
    except ReadError as e:
        raise FormatException(f'truncated offset table: {e}')

    logger.debug('decoded %d offsets' % len(positions))

    return positions
