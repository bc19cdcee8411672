'''
# CNVRS-TEXT

These are BINA containers (the format used by the Hedgehog Engine) holding
sheets of texts, each one with an optional font and an optional layout

  .-----------------------.
  | header                |  'BINA210L' + 'DATA' (0x40 bytes)
  | sheet records         |  everything after this point is addressed
  | text records          |  with 64-bit pointers relative to 0x40
  | texts                 |
  | secondary records     |  text -> (font, layout)
  | font records          |
  | layout records        |
  | names                 |  NUL terminated UTF-8, without duplicates
  | offset table          |  position of every pointer, see reloc
  '-----------------------'

The fonts and the layouts are referenced by name, a container reads each of
them only once, the first time an entry points to it.
'''
import logging
from typing import Dict, Optional

from ...enum import Compliant
from ...encodings import TextEncoding, create_codec
from ...exceptions import FormatException, UnrecoverableException
from ...fields import StructField, PointerField
from ...markup import Tag
from ...streams import Stream
from .enum import TextAlignment, VerticalAlignment, Fit
from .records import (
    BASE, TEXT_RECORD_SIZE, Header, SheetRecord, TextRecord, SecondaryRecord,
    FontRecord, FontValues, LayoutRecord, LayoutValues,
)
from .reloc import encode_offsets, decode_offsets


logger = logging.getLogger(__name__)


class _Entry(object):

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self):
        return '<%s(%s)>' % (
            self.__class__.__name__, ', '.join('%s=%r' % (k, v) for k, v in vars(self).items()))


class TextEntry(_Entry):

    def __init__(self, id: int, text: Tag, font_name: Optional[str] = None, layout_name: Optional[str] = None):
        self.id = id
        self.text = text
        self.font_name = font_name
        self.layout_name = layout_name


class Sheet(_Entry):
    '''Texts by name, in the order they are written.'''

    def __init__(self, entries: Optional[Dict[str, TextEntry]] = None, id: int = 6):
        self.entries = dict(entries) if entries is not None else {}
        self.id = id


class FontEntry(_Entry):
    '''Only the typeface and the size are mandatory, the other fields are
    None when missing from the file (that is different from being zero).'''

    def __init__(self, typeface: str, size: float, line_spacing: Optional[float] = None,
                 unknown1: Optional[int] = None, color: Optional[int] = None, unknown2: Optional[int] = None,
                 unknown3: Optional[int] = None, unknown4: Optional[int] = None):
        self.typeface = typeface
        self.size = size
        self.line_spacing = line_spacing
        self.unknown1 = unknown1
        self.color = color
        self.unknown2 = unknown2
        self.unknown3 = unknown3
        self.unknown4 = unknown4


class LayoutEntry(_Entry):

    def __init__(self, text_alignment=TextAlignment.LEFT, vertical_alignment=VerticalAlignment.TOP,
                 word_wrap=False, fit=Fit.NONE):
        self.text_alignment = text_alignment
        self.vertical_alignment = vertical_alignment
        self.word_wrap = word_wrap
        self.fit = fit


class CnvrsTextFile(object):

    def __init__(self, data=None, sheets: Optional[Dict[str, Sheet]] = None,
                 fonts: Optional[Dict[str, FontEntry]] = None, layouts: Optional[Dict[str, LayoutEntry]] = None,
                 compliant=Compliant.MAGIC):
        self.codec = create_codec(TextEncoding.CNVRS, strict=bool(compliant & Compliant.MARKUP))
        self.sheets = dict(sheets) if sheets is not None else {}
        self.fonts = dict(fonts) if fonts is not None else {}
        self.layouts = dict(layouts) if layouts is not None else {}
        self.compliant = compliant

        if data is not None:
            stream = data if isinstance(data, Stream) else Stream(data)
            logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)

    def __repr__(self):
        return '<%s(sheets=%s, fonts=%d, layouts=%d)>' % (
            self.__class__.__name__,
            dict((name, len(sheet.entries)) for name, sheet in self.sheets.items()),
            len(self.fonts), len(self.layouts))

    # reading

    def _record(self, cls, stream: Stream, position: int):
        with stream.at(position):
            record = cls(stream, compliant=self.compliant)

        missing = [_ for _ in record.get_relocations() if _ not in self._relocations]
        if missing:
            logger.warning('%s at 0x%x has pointers not in the offset table: %s' % (
                cls.__name__, position, ', '.join(hex(_) for _ in missing)))

        return record

    def _read_value(self, stream: Stream, pointer: PointerField, field: StructField):
        '''Dereference the pointer and unpack the field there, None if the pointer is null.'''
        if pointer.target is None:
            return None

        field.compliant = self.compliant

        with stream.at(pointer.target):
            field.unpack(stream)

        return field.value

    def _read_name(self, stream: Stream, pointer: PointerField) -> str:
        if pointer.target is None:
            raise FormatException('a mandatory name is missing', chain=[pointer.name])

        return stream.read_at(pointer.target, lambda s: s.read_cstring())

    def unpack(self, stream: Stream):
        self.sheets = {}
        self.fonts = {}
        self.layouts = {}
        self._relocations = set()

        header = self._record(Header, stream, 0)

        if header.file_length.value != len(stream):
            logger.warning('the file declares %d bytes but it has %d' % (header.file_length.value, len(stream)))
            if self.compliant & Compliant.MAGIC:
                raise FormatException('the file declares %d bytes but it has %d' % (
                    header.file_length.value, len(stream)))

        offsets_position = BASE + header.names_offset.value + header.names_length.value
        with stream.at(offsets_position):
            self._relocations = set(decode_offsets(stream.read(header.offsets_length.value), BASE))
        logger.debug('the offset table lists %d pointers' % len(self._relocations))

        # without names there is nothing (not even the name of a sheet)
        if header.names_offset.value == 0:
            return

        first = self._record(SheetRecord, stream, BASE)
        count, remainder = divmod(first.entries_offset.target - BASE, first.size)
        if count <= 0 or remainder:
            raise FormatException('the texts of the first sheet start at an unexpected offset (%r)' % (
                first.entries_offset))

        logger.debug('found %d sheets' % count)

        # fonts and layouts are shared between the texts: first all the
        # texts are read, then each font and layout only once
        references = []

        for idx in range(count):
            record = self._record(SheetRecord, stream, BASE + idx * first.size)
            name = self._read_name(stream, record.name_offset)

            if name in self.sheets:
                logger.warning('sheet \'%s\' is present more than once, only the last one is kept' % name)

            self.sheets[name] = self._read_sheet(stream, record, references)

        font_names = {}
        layout_names = {}
        for entry, font_position, layout_position in references:
            if font_position is not None:
                if font_position not in font_names:
                    font_names[font_position] = self._read_font(stream, font_position)
                entry.font_name = font_names[font_position]

            if layout_position is not None:
                if layout_position not in layout_names:
                    layout_names[layout_position] = self._read_layout(stream, layout_position)
                entry.layout_name = layout_names[layout_position]

    def _read_sheet(self, stream: Stream, record: SheetRecord, references: list) -> Sheet:
        '''The entries are appended to references together with the position
        of their font and of their layout (None if missing).'''
        sheet = Sheet(id=record.id.value)

        for idx in range(record.count.value):
            text_record = self._record(TextRecord, stream, record.entries_offset.target + idx * TEXT_RECORD_SIZE)
            name = self._read_name(stream, text_record.name_offset)

            with stream.at(text_record.text_offset.target):
                text = self.codec.decode(stream, count=text_record.text_length.value)

            secondary = self._record(SecondaryRecord, stream, text_record.secondary_offset.target)

            if name in sheet.entries:
                logger.warning('text \'%s\' is present more than once, only the last one is kept' % name)

            entry = TextEntry(text_record.id.value, text)
            sheet.entries[name] = entry

            references.append((entry, secondary.font_offset.target, secondary.layout_offset.target))

        return sheet

    def _read_font(self, stream: Stream, position: int) -> str:
        record = self._record(FontRecord, stream, position)
        name = self._read_name(stream, record.name_offset)

        if name in self.fonts:
            return name

        logger.debug('reading font \'%s\' at 0x%x' % (name, position))

        size = self._read_value(stream, record.size_offset, StructField('f'))

        self.fonts[name] = FontEntry(
            self._read_name(stream, record.typeface_offset),
            size if size is not None else 0.0,
            line_spacing=self._read_value(stream, record.line_spacing_offset, StructField('f')),
            unknown1=self._read_value(stream, record.unknown1_offset, StructField('I')),
            color=self._read_value(stream, record.color_offset, StructField('I')),
            unknown2=self._read_value(stream, record.unknown2_offset, StructField('I')),
            unknown3=self._read_value(stream, record.unknown3_offset, StructField('I')),
            unknown4=self._read_value(stream, record.unknown4_offset, StructField('I')),
        )

        return name

    def _read_layout(self, stream: Stream, position: int) -> str:
        record = self._record(LayoutRecord, stream, position)
        name = self._read_name(stream, record.name_offset)

        if name in self.layouts:
            return name

        logger.debug('reading layout \'%s\' at 0x%x' % (name, position))

        def read(pointer, field, default):
            value = self._read_value(stream, pointer, field)
            return default if value is None else value

        self.layouts[name] = LayoutEntry(
            text_alignment=read(record.text_alignment_offset, StructField('i', enum=TextAlignment),
                                TextAlignment.LEFT),
            vertical_alignment=read(record.vertical_alignment_offset, StructField('i', enum=VerticalAlignment),
                                    VerticalAlignment.TOP),
            word_wrap=read(record.word_wrap_offset, StructField('i'), 0) == 1,
            fit=read(record.fit_offset, StructField('i', enum=Fit), Fit.NONE),
        )

        return name

    # writing

    def _referenced(self, attribute: str, table: dict, kind: str) -> dict:
        '''Filter the table keeping only what is used by some text.'''
        used = set()
        for sheet_name, sheet in self.sheets.items():
            for text_name, entry in sheet.entries.items():
                name = getattr(entry, attribute)
                if name is None:
                    continue

                if name not in table:
                    raise UnrecoverableException('the text \'%s.%s\' uses the %s \'%s\' that doesn\'t exist' % (
                        sheet_name, text_name, kind, name))

                used.add(name)

        for name in table:
            if name not in used:
                logger.warning('the %s \'%s\' is not used by any text, it will not be written' % (kind, name))

        return dict((name, value) for name, value in table.items() if name in used)

    def pack(self) -> bytes:
        stream = Stream(b'')
        relocations = []

        fonts = self._referenced('font_name', self.fonts, 'font')
        layouts = self._referenced('layout_name', self.layouts, 'layout')

        def emit(chunk):
            '''Write the chunk at the end of the stream, its pointers end up
            in the offset table.'''
            chunk.pack(stream)
            relocations.extend(chunk.get_relocations())

            return chunk

        header = emit(Header())

        sheet_records = {}
        for name, sheet in self.sheets.items():
            record = SheetRecord()
            record.id = sheet.id
            record.count = len(sheet.entries)
            sheet_records[name] = emit(record)

        # raw texts are kept since they are needed twice
        texts = {}
        text_records = {}
        for sheet_name, sheet in self.sheets.items():
            sheet_records[sheet_name].entries_offset.target = stream.tell()

            for name, entry in sheet.entries.items():
                raw = self.codec.encode_bytes(entry.text)
                texts[sheet_name, name] = raw

                record = TextRecord()
                record.id = entry.id
                record.text_length = len(raw) // 2
                text_records[sheet_name, name] = emit(record)

        for key, raw in texts.items():
            text_records[key].text_offset.target = stream.tell()
            stream.write(raw)
            stream.write_uint16(0)
            stream.align(8)

        secondary_records = {}
        for key, record in text_records.items():
            record.secondary_offset.target = stream.tell()
            secondary_records[key] = emit(SecondaryRecord())

        font_records = dict((name, self._emit_font(stream, emit, font)) for name, font in fonts.items())
        layout_records = dict((name, self._emit_layout(stream, emit, layout)) for name, layout in layouts.items())

        names_position = stream.tell()
        names = self._emit_names(stream, fonts, layouts)

        def name_position(name):
            try:
                return names[name]
            except KeyError:
                raise UnrecoverableException('the name \'%s\' is not in the name table' % name)

        offsets_position = stream.tell()
        stream.write(encode_offsets(relocations, BASE))
        stream.align(4)

        length = len(stream)
        logger.debug('the offset table has %d pointers, the file is %d bytes' % (len(relocations), length))

        # backpatch
        header.value = {
            'file_length': length,
            'data_length': length - 16,
            'names_offset': names_position - BASE,
            'names_length': offsets_position - names_position,
            'offsets_length': length - offsets_position,
        }

        for sheet_name, sheet in self.sheets.items():
            sheet_records[sheet_name].name_offset.target = name_position(sheet_name)

            for name, entry in sheet.entries.items():
                text_records[sheet_name, name].name_offset.target = name_position(name)

                secondary = secondary_records[sheet_name, name]
                secondary.name_offset.target = name_position(name)
                if entry.font_name is not None:
                    secondary.font_offset.target = font_records[entry.font_name].offset
                if entry.layout_name is not None:
                    secondary.layout_offset.target = layout_records[entry.layout_name].offset

        for name, record in font_records.items():
            record.name_offset.target = name_position(name)
            record.typeface_offset.target = name_position(fonts[name].typeface)

        for name, record in layout_records.items():
            record.name_offset.target = name_position(name)

        chunks = [header]
        chunks.extend(sheet_records.values())
        chunks.extend(text_records.values())
        chunks.extend(secondary_records.values())
        chunks.extend(font_records.values())
        chunks.extend(layout_records.values())

        for chunk in chunks:
            with stream.at(chunk.offset):
                chunk.pack(stream)

        return stream.getvalue()

    @staticmethod
    def _emit_font(stream: Stream, emit, font: FontEntry) -> FontRecord:
        '''The values are written just after the pointers, so that these can
        be set before writing the record.'''
        record = FontRecord()
        values = FontValues()

        def value_position(field_name):
            return position + record.size + values.offset_of(field_name)

        position = stream.tell()

        record.size_offset.target = value_position('font_size')

        if font.line_spacing is not None:
            record.line_spacing_offset.target = value_position('line_spacing')

        # unknown1 and color are stored in the same place, unknown1 wins
        if font.unknown1 is not None:
            record.unknown1_offset.target = value_position('unknown1')
            if font.color is not None:
                logger.warning('unknown1 and color share the same value, the color %08x is lost' % font.color)
        elif font.color is not None:
            record.color_offset.target = value_position('unknown1')

        for attribute in ('unknown2', 'unknown3', 'unknown4'):
            if getattr(font, attribute) is not None:
                getattr(record, '%s_offset' % attribute).target = value_position(attribute)

        values.value = {
            'font_size': font.size,
            'line_spacing': font.line_spacing or 0.0,
            'unknown1': font.unknown1 if font.unknown1 is not None else font.color or 0,
            'unknown2': font.unknown2 or 0,
            'unknown3': font.unknown3 or 0,
            'unknown4': font.unknown4 or 0,
        }

        emit(record)
        emit(values)

        return record

    @staticmethod
    def _emit_layout(stream: Stream, emit, layout: LayoutEntry) -> LayoutRecord:
        record = LayoutRecord()
        values = LayoutValues()

        position = stream.tell()

        for field_name in ('text_alignment', 'vertical_alignment', 'word_wrap', 'fit'):
            getattr(record, '%s_offset' % field_name).target = position + record.size + values.offset_of(field_name)

        values.value = {
            'text_alignment': layout.text_alignment,
            'vertical_alignment': layout.vertical_alignment,
            'word_wrap': 1 if layout.word_wrap else 0,
            'fit': layout.fit,
        }

        emit(record)
        emit(values)

        return record

    def _emit_names(self, stream: Stream, fonts, layouts) -> Dict[str, int]:
        '''Write the names, each one only once, returning their positions.'''
        names = {}

        def add(name):
            if name not in names:
                names[name] = stream.tell()
                stream.write_cstring(name)

        for sheet_name, sheet in self.sheets.items():
            add(sheet_name)
            for name in sheet.entries:
                add(name)

        for name, font in fonts.items():
            add(name)
            add(font.typeface)

        for name in layouts:
            add(name)

        stream.align(4)

        return names

    def save(self, path):
        '''The file is written only after all the data has been packed.'''
        data = self.pack()

        with open(path, 'wb') as f:
            f.write(data)
