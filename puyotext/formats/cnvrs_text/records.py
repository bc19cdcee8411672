'''
Fixed-stride records of the CNVRS-TEXT containers.

All the pointers (the *_offset fields) are 64-bit and relative to BASE, i.e.
the end of the header; a pointer equal to zero means "nothing here". The
optional values of the fonts are listed in the offset table only when present.
'''
from ...core import Chunk
from ...fields import StructField, StringField, PointerField
from .enum import TextAlignment, VerticalAlignment, Fit


BASE = 0x40


def Pointer(**kw):
    return PointerField(base=BASE, **kw)


class Header(Chunk):
    magic          = StringField(default=b'BINA210L', is_magic=True)
    file_length    = StructField('I')
    unknown0       = StructField('I', default=1)
    data_magic     = StringField(default=b'DATA', is_magic=True)
    data_length    = StructField('I')
    names_offset   = StructField('I')
    names_length   = StructField('I')
    offsets_length = StructField('I')
    unknown1       = StructField('I', default=24)
    padding        = StringField(24)


class SheetRecord(Chunk):
    id             = StructField('B', default=6)
    unknown0       = StructField('B', default=1)
    count          = StructField('H')
    padding0       = StringField(4)
    entries_offset = Pointer()
    name_offset    = Pointer()
    padding1       = StringField(8)


class TextRecord(Chunk):
    id               = StructField('Q')
    name_offset      = Pointer()
    secondary_offset = Pointer()
    text_offset      = Pointer()
    text_length      = StructField('q')  # in UTF-16 units, the NUL excluded
    padding          = StringField(8)


class SecondaryRecord(Chunk):
    name_offset   = Pointer()
    font_offset   = Pointer()
    layout_offset = Pointer()
    padding       = StringField(8)


class FontRecord(Chunk):
    '''The pointers of a font, the values usually follow as FontValues.'''
    name_offset         = Pointer()
    typeface_offset     = Pointer()
    size_offset         = Pointer()
    line_spacing_offset = Pointer(relocate_null=False)
    unknown1_offset     = Pointer(relocate_null=False)
    color_offset        = Pointer(relocate_null=False)
    unknown2_offset     = Pointer(relocate_null=False)
    reserved0           = StringField(8)
    unknown3_offset     = Pointer(relocate_null=False)
    reserved1           = StringField(24)
    unknown4_offset     = Pointer(relocate_null=False)
    reserved2           = StringField(16)


class FontValues(Chunk):
    font_size    = StructField('f', default=0.0)
    padding0     = StringField(4)
    line_spacing = StructField('f', default=0.0)
    padding1     = StringField(4)
    unknown1     = StructField('I')  # shared with color
    padding2     = StringField(4)
    unknown2     = StructField('I')
    padding3     = StringField(4)
    unknown4     = StructField('I')
    padding4     = StringField(4)
    unknown3     = StructField('I')
    padding5     = StringField(4)


class LayoutRecord(Chunk):
    name_offset               = Pointer()
    reserved0                 = StringField(24)
    text_alignment_offset     = Pointer()
    vertical_alignment_offset = Pointer()
    word_wrap_offset          = Pointer()
    fit_offset                = Pointer()
    reserved1                 = StringField(32)


class LayoutValues(Chunk):
    text_alignment     = StructField('i', enum=TextAlignment)
    padding0           = StringField(4)
    vertical_alignment = StructField('i', enum=VerticalAlignment)
    padding1           = StringField(4)
    word_wrap          = StructField('i')
    padding2           = StringField(4)
    fit                = StructField('i', enum=Fit)
    padding3           = StringField(4)


TEXT_RECORD_SIZE = TextRecord().size
