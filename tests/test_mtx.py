import struct

import pytest

from puyotext.encodings import CharacterMapCodec, Utf16Codec
from puyotext.enum import Compliant, Width
from puyotext.exceptions import EncodingMismatchException, FormatException, MarkupException
from puyotext.formats import MtxFile
from puyotext.markup import Tag, Run, ROOT_NAME


def text(string):
    return Tag(ROOT_NAME, children=[Run(string)] if string else [])


def units(string):
    return b''.join(struct.pack('<H', ord(_)) for _ in string) + struct.pack('<H', 0xf8ff)


def test_pack_32():
    mtx = MtxFile(sections=[[text('ab'), text('c')], [text('')]])

    data = mtx.pack()

    assert data == struct.pack(
        '<7I',
        0x28,         # length
        0x08,         # sections table
        0x10, 0x18,   # sections
        0x1c, 0x22,   # strings of section 0
        0x26,         # strings of section 1
    ) + units('ab') + units('c') + units('')


def test_roundtrip_32(tmp_path):
    sections = [[text('Hello'), text('World')], [text('Puyo')], []]
    mtx = MtxFile(sections=sections)

    path = tmp_path / 'test.mtx'
    mtx.save(path)

    other = MtxFile(path)

    assert other.width == Width.WIDTH32
    assert other.sections == sections


def test_roundtrip_64():
    sections = [[text('Hello'), text('')], [text('Puyo\nPuyo')]]
    mtx = MtxFile(sections=sections, width=Width.WIDTH64)

    data = mtx.pack()

    assert struct.unpack_from('<qq', data) == (len(data), 16)

    other = MtxFile(data)

    assert other.has_64bit_offsets
    assert other.sections == sections


def test_probe_width():
    with pytest.raises(FormatException):
        MtxFile(struct.pack('<II', 8, 12))


def test_length_check():
    data = MtxFile(sections=[[text('ab')]]).pack()

    with pytest.raises(FormatException):
        MtxFile(data + b'\x00\x00')

    # some files declare the wrong length, they can be read anyway
    mtx = MtxFile(data + b'\x00\x00', compliant=Compliant.NONE)

    assert mtx.sections == [[text('ab')]]


def test_too_short():
    with pytest.raises(FormatException):
        MtxFile(b'\x04\x00\x00\x00')


def test_offset_outside():
    '''a string pointing outside the file is read as an empty string'''
    data = bytearray(MtxFile(sections=[[text('ab'), text('c')]]).pack())
    struct.pack_into('<I', data, 0x10, 0x1000)

    mtx = MtxFile(bytes(data))

    assert mtx.sections == [[text('ab'), Tag(ROOT_NAME)]]


def test_empty():
    data = MtxFile().pack()

    assert data == struct.pack('<II', 8, 8)
    assert MtxFile(data).sections == []


def test_character_map():
    codec = CharacterMapCodec('abc')
    mtx = MtxFile(sections=[[text('cab')]], codec=codec)

    data = mtx.pack()

    assert data[-8:] == struct.pack('<4H', 2, 0, 1, 0xffff)
    assert MtxFile(data, codec=codec).sections == [[text('cab')]]

    with pytest.raises(EncodingMismatchException):
        MtxFile(data, codec=Utf16Codec())


def test_strict_markup():
    # a color closed but never opened
    data = struct.pack('<4I', 0x14, 8, 12, 16) + struct.pack('<2H', 0xf801, 0xf8ff)

    assert MtxFile(data).sections == [[Tag(ROOT_NAME)]]

    with pytest.raises(MarkupException):
        MtxFile(data, compliant=Compliant.MAGIC | Compliant.MARKUP)
