"""
# Puyo Puyo text containers.

The games store their texts in a couple of binary containers and, inside
them, the texts are sequences of 16-bit tokens mixing characters and tags.

Two layers are defined:

 1. the codecs (puyotext.encodings): from a markup tree to the tokens and
    back; there are three of them, UTF16, CHARACTER_MAP (the tokens are indexes
    inside a list of characters coming from a font) and CNVRS (tags with
    inline names).

 2. the containers (puyotext.formats): MTX string tables, a list of sections
    of texts, and CNVRS-TEXT, BINA resources with sheets of texts with their
    fonts and layouts.

Both layers define unpack() that reads the binary data building the
high-level representation and pack() that does the inverse; the fixed
records are described as Chunks of Fields (puyotext.core) so that their
layout comes from the declaration.

The data is always entirely in memory, see puyotext.streams.
"""
