'''
# Character map tokens

Some platforms don't store the characters but their index inside the font
used to render them: the list of characters comes from the font file (FPD/FNT)
shipped with the string table.

The control tokens are the same of the UTF-16 encoding with some additions;
the newline and the terminator use different values so that a string table
decoded with the wrong encoding is detected at the end of its first string.
'''
import logging
from typing import Iterable

from ..markup import Tag
from ..exceptions import CharacterNotFoundException, EncodingMismatchException
from .base import TextCodec, get_uint16_attribute
from . import utf16


logger = logging.getLogger(__name__)


COLOR_START       = utf16.COLOR_START
COLOR_END         = utf16.COLOR_END
CLEAR             = utf16.CLEAR
ARROW             = utf16.ARROW
SPEED             = utf16.SPEED
WAIT              = utf16.WAIT
TUTORIAL_COURSE   = 0xf884
TUTORIAL_LEVEL    = 0xf885
TUTORIAL_QUESTION = 0xf886
NEWLINE           = 0xfffd
R                 = 0xfffe
TERMINATOR        = utf16.CHARACTER_MAP_TERMINATOR

_LEAVES = {
    CLEAR: 'clear',
    ARROW: 'arrow',
    TUTORIAL_COURSE: 'tutorialCourse',
    TUTORIAL_LEVEL: 'tutorialLevel',
    TUTORIAL_QUESTION: 'tutorialQuestion',
    R: 'r',
}

_LEAVES_W_VALUE = {
    SPEED: 'speed',
    WAIT: 'wait',
}


class CharacterMapCodec(TextCodec):
    name = 'charmap'

    def __init__(self, characters: Iterable[str], strict=False):
        super().__init__(strict=strict)
        self.characters = list(characters)
        self.char_to_index = {}

        for index, character in enumerate(self.characters):
            # the same character can appear more than once, the first wins
            self.char_to_index.setdefault(character, index)

    def __repr__(self):
        return f'<{self.__class__.__name__}({len(self.characters)} characters)>'

    def decode(self, stream, count=None):
        builder = self.create_builder()

        while (c := stream.read_uint16()) != TERMINATOR:
            if c == COLOR_START:
                # a color not closed before the next one becomes an empty tag
                if builder.current.name == 'color':
                    builder.collapse_current()

                builder.push(Tag('color', {'value': str(stream.read_uint16())}))
            elif c == COLOR_END:
                builder.pop()
            elif c in _LEAVES:
                builder.add_leaf(Tag(_LEAVES[c]))
            elif c in _LEAVES_W_VALUE:
                builder.add_leaf(Tag(_LEAVES_W_VALUE[c], {'value': str(stream.read_uint16())}))
            elif c == NEWLINE:
                builder.add_text('\n')
            elif c == utf16.TERMINATOR:
                raise EncodingMismatchException(
                    'found terminator 0x%04x at 0x%x: this text doesn\'t need a character map' % (
                        c, stream.tell() - 2))
            else:
                builder.add_text(self.get_character(c))

        if builder.current.name == 'color':
            builder.collapse_current()

        return builder.finish()

    def get_character(self, index: int) -> str:
        if index >= len(self.characters):
            raise CharacterNotFoundException('index %d (0x%04x) is not in the character map' % (index, index))

        return self.characters[index]

    def get_index(self, character: str) -> int:
        try:
            return self.char_to_index[character]
        except KeyError:
            raise CharacterNotFoundException('character %r (U+%04X) is not in the character map' % (
                character, ord(character)))

    def encode(self, stream, tree):
        self.encode_children(stream, tree)
        stream.write_uint16(TERMINATOR)

    def encode_text(self, stream, text):
        for character in text:
            stream.write_uint16(NEWLINE if character == '\n' else self.get_index(character))

    def encode_tag_color(self, stream, tag):
        stream.write_uint16(COLOR_START)
        stream.write_uint16(get_uint16_attribute(tag, 'value'))

        # an empty color is only the opening token
        if tag.children:
            self.encode_children(stream, tag)
            stream.write_uint16(COLOR_END)

    def encode_tag_speed(self, stream, tag):
        stream.write_uint16(SPEED)
        stream.write_uint16(get_uint16_attribute(tag, 'value'))

    def encode_tag_wait(self, stream, tag):
        stream.write_uint16(WAIT)
        stream.write_uint16(get_uint16_attribute(tag, 'value'))

    def encode_tag_clear(self, stream, tag):
        stream.write_uint16(CLEAR)

    def encode_tag_arrow(self, stream, tag):
        stream.write_uint16(ARROW)

    def encode_tag_tutorialCourse(self, stream, tag):
        stream.write_uint16(TUTORIAL_COURSE)

    def encode_tag_tutorialLevel(self, stream, tag):
        stream.write_uint16(TUTORIAL_LEVEL)

    def encode_tag_tutorialQuestion(self, stream, tag):
        stream.write_uint16(TUTORIAL_QUESTION)

    def encode_tag_r(self, stream, tag):
        stream.write_uint16(R)
