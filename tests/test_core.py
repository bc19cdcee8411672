import pytest

from puyotext.core import Chunk
from puyotext.enum import Compliant
from puyotext.exceptions import MagicException, UnpackException
from puyotext.fields import StructField, StringField, PointerField
from puyotext.meta import Meta
from puyotext.streams import Stream


def test_chunk():
    """Check that building a Chunk from fields behaves correctly."""
    class Dummy(Chunk):
        a = StructField('I', default=0xbad)
        b = StringField(0x10)
        c = StructField('I', default=0xdeadbeef)

    dummy = Dummy()

    assert dummy.a.size == 4
    assert dummy.a.raw == b'\xad\x0b\x00\x00'
    assert dummy.a.value == 0xbad
    assert dummy.a.offset == 0x00
    assert dummy.a.father == dummy

    assert dummy.b.size == 0x10
    assert dummy.b.raw == b'\x00' * 0x10
    assert dummy.b.offset == 0x04

    assert dummy.c.size == 0x4
    assert dummy.c.raw == b'\xef\xbe\xad\xde'
    assert dummy.c.offset == 0x14

    assert dummy.size == 0x18
    assert len(dummy.raw) == dummy.size
    assert dummy.raw == (
        b'\xad\x0b\x00\x00' +
        b'\x00' * 0x10 +
        b'\xef\xbe\xad\xde'
    )


def test_meta():
    class Dummy(Chunk):
        field = StructField('i')

    class Dummy2(Chunk):
        field2 = StructField('i')

    d = Dummy()
    d2 = Dummy2()

    assert isinstance(d._meta, Meta)
    assert d._meta.fields == ['field']
    assert isinstance(d.field, StructField)
    assert d2._meta.fields == ['field2']

    # the instances don't share the fields
    other = Dummy()
    other.field = 3

    assert d.field.value == 0
    assert other.field.value == 3


def test_duplicate_field():
    class Dummy(Chunk):
        field = StructField('i')

    with pytest.raises(AttributeError):
        Dummy.add_to_class('field', StructField('i'))


def test_inheritance():
    '''subclasses inherit fields'''
    class Father(Chunk):
        field_a = StringField(0x10)
        field_b = StructField("I")

    class Son(Father):
        field_c = StringField(0x08)

    field_b_value = b'\x01\x02\x03\x04'
    field_c_value = b'ABCDEFGH'
    son = Son(b'A' * 16 + field_b_value + field_c_value)

    assert son.get_ordered_fields_name() == [
        'field_a', 'field_b', 'field_c',
    ]

    assert son.field_b.value == 0x04030201, f'field_b is {son.field_b.value:x}'
    assert son.field_c.value == field_c_value


def test_layout():
    class Record(Chunk):
        name_offset = StructField('q')
        count = StructField('H')
        padding = StringField(6)
        text_offset = StructField('q')

    record = Record()

    assert record.layout == {
        'name_offset': (0, 8),
        'count': (8, 2),
        'padding': (10, 6),
        'text_offset': (16, 8),
    }
    assert record.offset_of('text_offset') == 16


def test_packing_w_offset():
    class Dummy(Chunk):
        a = StructField('H')
        b = StructField('H')

    stream = Stream(b'')
    stream.write(b'\xff' * 4)

    dummy = Dummy()
    dummy.value = {'a': 1, 'b': 2}
    dummy.pack(stream)

    assert dummy.offset == 4
    assert dummy.b.offset == 6
    assert stream.getvalue() == b'\xff' * 4 + b'\x01\x00\x02\x00'

    # packing again in the same place overwrites
    dummy.b = 3
    with stream.at(dummy.offset):
        dummy.pack(stream)

    assert stream.getvalue() == b'\xff' * 4 + b'\x01\x00\x03\x00'
    assert dummy.value == {'a': 1, 'b': 3}


def test_unpack_from_stream():
    class Dummy(Chunk):
        a = StructField('H')
        b = StructField('H')

    stream = Stream(b'\x00\x00\x01\x00\x02\x00')
    stream.seek(2)

    dummy = Dummy(stream)

    assert dummy.offset == 2
    assert dummy.value == {'a': 1, 'b': 2}
    assert stream.tell() == 6


def test_unpack_error_chain():
    class Inner(Chunk):
        magic = StringField(default=b'DATA', is_magic=True)

    class Outer(Chunk):
        length = StructField('I')
        inner = Inner()

    with pytest.raises(MagicException) as e:
        Outer(b'\x00\x00\x00\x00ATAD', compliant=Compliant.MAGIC)

    assert e.value.chain == ['magic', 'inner']
    assert str(e.value).endswith('(at inner.magic)')

    with pytest.raises(UnpackException) as e:
        Outer(b'\x00\x00')

    assert e.value.chain == ['length']

    outer = Outer(b'\x00\x00\x00\x00ATAD')
    assert outer.inner.magic.value == b'ATAD'


def test_relocations():
    class Record(Chunk):
        id = StructField('I')
        padding = StringField(4)
        first = PointerField()
        second = PointerField(relocate_null=False)
        third = PointerField(relocate_null=False)

    assert Record._meta.pointers == ['first', 'second', 'third']

    record = Record()
    record.third.target = 0x100

    stream = Stream(b'\x00' * 0x10)
    stream.seek(0x10)
    record.pack(stream)

    assert record.get_relocations() == [0x18, 0x28]

    other = Record(stream.getvalue()[0x10:])

    assert other.get_relocations() == [0x08, 0x18]
    assert other.third.target == 0x100
