'''
# UTF-16 tokens

The encoding used by the string tables that don't need a font file: every
character is stored as its own UTF-16 code unit and the code points of the
private use area starting at 0xF800 are the control tokens.
'''
import logging

from ..markup import Tag
from ..exceptions import EncodingMismatchException
from .base import TextCodec, get_uint16_attribute, iter_utf16_units


logger = logging.getLogger(__name__)


COLOR_START = 0xf800
COLOR_END   = 0xf801
CLEAR       = 0xf812
ARROW       = 0xf813
SPEED       = 0xf880
WAIT        = 0xf881
NEWLINE     = 0xf8fd
TERMINATOR  = 0xf8ff

# terminator of the character map encoding
CHARACTER_MAP_TERMINATOR = 0xffff


class Utf16Codec(TextCodec):
    name = 'utf16'

    def decode(self, stream, count=None):
        '''The count is not used: the string ends with its terminator.'''
        builder = self.create_builder()

        while (c := stream.read_uint16()) != TERMINATOR:
            if c == COLOR_START:
                builder.push(Tag('color', {'value': str(stream.read_uint16())}))
            elif c == COLOR_END:
                builder.pop()
            elif c == CLEAR:
                builder.add_leaf(Tag('clear'))
            elif c == ARROW:
                builder.add_leaf(Tag('arrow'))
            elif c == SPEED:
                builder.add_leaf(Tag('speed', {'value': str(stream.read_uint16())}))
            elif c == WAIT:
                builder.add_leaf(Tag('wait', {'value': str(stream.read_uint16())}))
            elif c == NEWLINE:
                builder.add_text('\n')
            elif c == CHARACTER_MAP_TERMINATOR:
                raise EncodingMismatchException(
                    'found terminator 0x%04x at 0x%x: this text needs a character map' % (c, stream.tell() - 2))
            else:
                builder.add_text(chr(c))

        return builder.finish()

    def encode(self, stream, tree):
        self.encode_children(stream, tree)
        stream.write_uint16(TERMINATOR)

    def encode_text(self, stream, text):
        for unit in iter_utf16_units(text):
            stream.write_uint16(NEWLINE if unit == 0x0a else unit)

    def encode_tag_color(self, stream, tag):
        stream.write_uint16(COLOR_START)
        stream.write_uint16(get_uint16_attribute(tag, 'value'))
        self.encode_children(stream, tag)
        stream.write_uint16(COLOR_END)

    def encode_tag_clear(self, stream, tag):
        stream.write_uint16(CLEAR)

    def encode_tag_arrow(self, stream, tag):
        stream.write_uint16(ARROW)

    def encode_tag_speed(self, stream, tag):
        stream.write_uint16(SPEED)
        stream.write_uint16(get_uint16_attribute(tag, 'value'))

    def encode_tag_wait(self, stream, tag):
        stream.write_uint16(WAIT)
        stream.write_uint16(get_uint16_attribute(tag, 'value'))
