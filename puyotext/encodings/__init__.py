'''
# Text encodings

Three ways of turning a markup tree into 16-bit tokens exist:

 1. UTF16: the characters are stored as they are, the string ends with a terminator
 2. CHARACTER_MAP: the characters are stored as indexes inside an external
    list of characters (usually from a font file), terminated like the previous one
 3. CNVRS: tags inlined with their names, the length of the text is stored elsewhere

the first two are used by the string tables, the last one by the BINA containers.
'''
from enum import Enum

from .base import TextCodec
from .utf16 import Utf16Codec
from .charmap import CharacterMapCodec
from .cnvrs import CnvrsCodec


class TextEncoding(Enum):
    UTF16         = 'utf16'
    CHARACTER_MAP = 'charmap'
    CNVRS         = 'cnvrs'


def create_codec(encoding: TextEncoding, characters=None, strict=False) -> TextCodec:
    '''Build the codec for the given encoding, the characters are required
    (and accepted) only by the character map.'''
    if encoding == TextEncoding.CHARACTER_MAP:
        if characters is None:
            raise ValueError('the character map encoding needs the list of characters')

        return CharacterMapCodec(characters, strict=strict)

    if characters is not None:
        raise ValueError(f'the encoding {encoding.name} doesn\'t use a list of characters')

    if encoding == TextEncoding.UTF16:
        return Utf16Codec(strict=strict)
    elif encoding == TextEncoding.CNVRS:
        return CnvrsCodec(strict=strict)

    raise ValueError(f'unknown encoding {encoding!r}')
