'''
# CNVRS-TEXT tokens

The texts inside the BINA containers are plain UTF-16 where the tags are
stored inline: a tag token is recognized looking at its high nibble and at
its low nibble (token & 0xF00F)

    0xE000  color, followed by the ARGB value (2 units), its name and a NUL
    0xE010  end of color
    0xE001  variable, followed by its name and a NUL
    0xE005  image, followed by its name and a NUL

the remaining 8 bits (4-11) contain the length of what follows the token,
stored as (length + 1) * 2; for a color the length counts also the two units
of the ARGB value.

Unlike the string tables there is no terminator: the container stores the
number of units of each text.
'''
import logging

from ..markup import Tag
from ..exceptions import UnpackException, UnsupportedTagException, MarkupException
from .base import TextCodec, get_attribute, iter_utf16_units


logger = logging.getLogger(__name__)


TAG_MASK    = 0xF00F
COLOR       = 0xE000
COLOR_END   = 0xE010
VARIABLE    = 0xE001
IMAGE       = 0xE005

# the length is stored in 8 bits as (length + 1) * 2
MAX_NAME_LENGTH = 0xFF // 2 - 1


def get_name_length(token: int) -> int:
    return (((token & 0x0FF0) >> 4) // 2) - 1


def set_name_length(length: int) -> int:
    if not 0 <= length <= MAX_NAME_LENGTH:
        raise UnsupportedTagException('names can have at most %d units, %d given' % (MAX_NAME_LENGTH, length))

    return (((length + 1) * 2) << 4) & 0x0FF0


class CnvrsCodec(TextCodec):
    name = 'cnvrs'

    def decode(self, stream, count=None):
        '''The count (the number of UTF-16 units to read) is mandatory.'''
        if count is None:
            raise ValueError('the number of units to read is required')

        units = [stream.read_uint16() for _ in range(count)]
        builder = self.create_builder()

        def take(start, length):
            if length < 0 or start + length > len(units):
                raise UnpackException('tag at unit %d needs %d units but the text has only %d' % (
                    idx, length, len(units) - start))

            return units[start:start + length]

        idx = 0
        while idx < len(units):
            c = units[idx]
            kind = c & TAG_MASK

            if kind == COLOR and c == COLOR_END:
                builder.pop()
            elif kind == COLOR:
                length = get_name_length(c) - 2
                argb_high, argb_low = take(idx + 1, 2)
                name = self._to_str(take(idx + 3, length))
                builder.push(Tag('color', {
                    'name': name,
                    'value': '%08X' % ((argb_high << 16) | argb_low),
                }))
                # now we are on the NUL after the name, skipped below
                idx += 2 + length + 1
            elif kind == VARIABLE or kind == IMAGE:
                length = get_name_length(c)
                name = self._to_str(take(idx + 1, length))
                builder.add_leaf(Tag('var' if kind == VARIABLE else 'image', {'name': name}))
                idx += length + 1
            else:
                builder.add_text(chr(c))

            idx += 1

        return builder.finish()

    @staticmethod
    def _to_str(units) -> str:
        return ''.join(chr(_) for _ in units).encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'surrogatepass')

    def unit_count(self, tree: Tag) -> int:
        return self.byte_count(tree) // 2

    def encode(self, stream, tree):
        self.encode_children(stream, tree)

    def encode_text(self, stream, text):
        for unit in iter_utf16_units(text):
            stream.write_uint16(unit)

    def _encode_name(self, stream, name):
        self.encode_text(stream, name)
        stream.write_uint16(0)

    def encode_tag_color(self, stream, tag):
        name = get_attribute(tag, 'name')
        value = get_attribute(tag, 'value')
        try:
            argb = int(value, 16)
        except ValueError:
            raise MarkupException('the color \'%s\' has an invalid value: %r' % (name, value))

        if not 0 <= argb <= 0xFFFFFFFF:
            raise MarkupException('the color \'%s\' must fit in 32 bits: %r' % (name, value))

        stream.write_uint16(COLOR | set_name_length(len(list(iter_utf16_units(name))) + 2))
        stream.write_uint16(argb >> 16)
        stream.write_uint16(argb & 0xFFFF)
        self._encode_name(stream, name)
        self.encode_children(stream, tag)
        stream.write_uint16(COLOR_END)

    def _encode_tag_w_name(self, stream, tag, kind):
        name = get_attribute(tag, 'name')

        stream.write_uint16(kind | set_name_length(len(list(iter_utf16_units(name)))))
        self._encode_name(stream, name)

    def encode_tag_var(self, stream, tag):
        self._encode_tag_w_name(stream, tag, VARIABLE)

    def encode_tag_image(self, stream, tag):
        self._encode_tag_w_name(stream, tag, IMAGE)
