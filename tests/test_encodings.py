import struct

import pytest

from puyotext.encodings import (
    TextEncoding, create_codec, Utf16Codec, CharacterMapCodec, CnvrsCodec,
)
from puyotext.encodings import cnvrs
from puyotext.exceptions import (
    CharacterNotFoundException, EncodingMismatchException, MarkupException,
    UnpackException, UnsupportedTagException,
)
from puyotext.markup import Tag, Run, ROOT_NAME
from puyotext.streams import Stream


def units(*values):
    return struct.pack('<%dH' % len(values), *values)


def text(*children):
    return Tag(ROOT_NAME, children=list(children))


def test_create_codec():
    assert isinstance(create_codec(TextEncoding.UTF16), Utf16Codec)
    assert isinstance(create_codec(TextEncoding.CNVRS), CnvrsCodec)
    assert isinstance(create_codec(TextEncoding.CHARACTER_MAP, characters='abc'), CharacterMapCodec)

    with pytest.raises(ValueError):
        create_codec(TextEncoding.CHARACTER_MAP)

    with pytest.raises(ValueError):
        create_codec(TextEncoding.UTF16, characters='abc')


def test_utf16():
    codec = Utf16Codec()
    tree = text(
        Run('Hi\n'),
        Tag('color', {'value': '2'}, [Run('you')]),
        Tag('wait', {'value': '30'}),
        Tag('clear'),
    )

    data = codec.encode_bytes(tree)

    assert data == units(
        ord('H'), ord('i'), 0xf8fd,
        0xf800, 2, ord('y'), ord('o'), ord('u'), 0xf801,
        0xf881, 30,
        0xf812,
        0xf8ff,
    )
    assert codec.byte_count(tree) == len(data)
    assert codec.decode_bytes(data) == tree


def test_utf16_stops_at_terminator():
    codec = Utf16Codec()
    stream = Stream(units(ord('a'), 0xf8ff, ord('b'), 0xf8ff))

    assert codec.decode(stream) == text(Run('a'))
    assert stream.tell() == 4
    assert codec.decode(stream) == text(Run('b'))


def test_utf16_surrogates():
    codec = Utf16Codec()
    tree = text(Run('\U0001f600'))

    data = codec.encode_bytes(tree)

    assert data == units(0xd83d, 0xde00, 0xf8ff)
    assert codec.decode_bytes(data) == tree


def test_utf16_mismatch():
    with pytest.raises(EncodingMismatchException):
        Utf16Codec().decode_bytes(units(0, 1, 0xffff))


def test_utf16_missing_terminator():
    with pytest.raises(UnpackException):
        Utf16Codec().decode_bytes(units(ord('a')))


def test_utf16_unsupported():
    with pytest.raises(UnsupportedTagException):
        Utf16Codec().encode_bytes(text(Tag('tutorialCourse')))

    with pytest.raises(MarkupException):
        Utf16Codec().encode_bytes(text(Tag('color')))

    with pytest.raises(MarkupException):
        Utf16Codec().encode_bytes(text(Tag('wait', {'value': '70000'})))


def test_charmap_index():
    codec = CharacterMapCodec(['a', 'b', 'c'])

    data = codec.encode_bytes(text(Run('abc')))

    assert data == units(0, 1, 2, 0xffff)
    assert codec.decode_bytes(data) == text(Run('abc'))

    with pytest.raises(LookupError):
        codec.encode_bytes(text(Run('abd')))

    with pytest.raises(CharacterNotFoundException):
        codec.decode_bytes(units(3, 0xffff))


def test_charmap_duplicates():
    codec = CharacterMapCodec('aba')

    assert codec.encode_bytes(text(Run('a'))) == units(0, 0xffff)
    assert codec.decode_bytes(units(2, 1, 0xffff)) == text(Run('ab'))


def test_charmap_tags():
    codec = CharacterMapCodec('ab')
    tree = text(
        Run('a\n'),
        Tag('color', {'value': '1'}, [Run('b')]),
        Tag('speed', {'value': '4'}),
        Tag('tutorialCourse'),
        Tag('tutorialLevel'),
        Tag('tutorialQuestion'),
        Tag('r'),
        Tag('arrow'),
    )

    data = codec.encode_bytes(tree)

    assert data == units(
        0, 0xfffd,
        0xf800, 1, 1, 0xf801,
        0xf880, 4,
        0xf884, 0xf885, 0xf886, 0xfffe, 0xf813,
        0xffff,
    )
    assert codec.decode_bytes(data) == tree


def test_charmap_color_auto_close():
    codec = CharacterMapCodec('abc')

    # a color opened while another one is open, and one never closed
    tree = codec.decode_bytes(units(0xf800, 1, 0, 0xf800, 2, 1, 0xf801, 0xf800, 3, 2, 0xffff))

    assert tree == text(
        Tag('color', {'value': '1'}),
        Run('a'),
        Tag('color', {'value': '2'}, [Run('b')]),
        Tag('color', {'value': '3'}),
        Run('c'),
    )

    # an empty color is written as its opening token only
    assert codec.encode_bytes(text(Tag('color', {'value': '1'}), Run('a'))) == units(0xf800, 1, 0, 0xffff)


def test_charmap_mismatch():
    with pytest.raises(EncodingMismatchException):
        CharacterMapCodec('ab').decode_bytes(units(0, 1, 0xf8ff))


def test_cnvrs_name_length():
    assert cnvrs.get_name_length(cnvrs.set_name_length(0)) == 0
    assert cnvrs.get_name_length(cnvrs.set_name_length(5)) == 5
    assert cnvrs.set_name_length(5) == 0x0c0
    assert cnvrs.get_name_length(cnvrs.set_name_length(cnvrs.MAX_NAME_LENGTH)) == cnvrs.MAX_NAME_LENGTH

    with pytest.raises(UnsupportedTagException):
        cnvrs.set_name_length(cnvrs.MAX_NAME_LENGTH + 1)


def test_cnvrs():
    codec = CnvrsCodec()
    tree = text(
        Run('Go\n'),
        Tag('color', {'name': 'red', 'value': 'FFFF0000'}, [Run('now')]),
        Tag('var', {'name': 'ab'}),
        Tag('image', {'name': 'x'}),
    )

    data = codec.encode_bytes(tree)

    assert data == units(
        ord('G'), ord('o'), ord('\n'),
        0xe000 | (((3 + 2 + 1) * 2) << 4), 0xffff, 0x0000, ord('r'), ord('e'), ord('d'), 0,
        ord('n'), ord('o'), ord('w'),
        0xe010,
        0xe001 | (((2 + 1) * 2) << 4), ord('a'), ord('b'), 0,
        0xe005 | (((1 + 1) * 2) << 4), ord('x'), 0,
    )
    assert codec.unit_count(tree) == len(data) // 2
    assert codec.decode_bytes(data, count=len(data) // 2) == tree


def test_cnvrs_count():
    codec = CnvrsCodec()
    stream = Stream(units(ord('a'), ord('b'), ord('c')))

    assert codec.decode(stream, count=2) == text(Run('ab'))
    assert stream.tell() == 4

    with pytest.raises(ValueError):
        codec.decode_bytes(units(ord('a')))

    with pytest.raises(UnpackException):
        codec.decode_bytes(units(ord('a')), count=2)


def test_cnvrs_truncated_tag():
    # the variable says its name has 2 units but the text ends before
    data = units(0xe001 | (((2 + 1) * 2) << 4), ord('a'))

    with pytest.raises(UnpackException):
        CnvrsCodec().decode_bytes(data, count=2)


def test_cnvrs_invalid_color():
    with pytest.raises(MarkupException):
        CnvrsCodec().encode_bytes(text(Tag('color', {'name': 'red', 'value': 'kebab'})))

    with pytest.raises(MarkupException):
        CnvrsCodec().encode_bytes(text(Tag('var')))

    with pytest.raises(UnsupportedTagException):
        CnvrsCodec().encode_bytes(text(Tag('arrow')))
