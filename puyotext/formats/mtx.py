'''
# MTX string tables

The string tables are organized in sections, each one a list of strings:

  .------------------------------.
  | length of the file           |
  | offset of the sections table |
  | section 0 offset             |---.
  | ...                          |   |
  | section N offset             |   |
  | section 0 string 0 offset    |<--'
  | ...                          |
  | section N string M offset    |
  | strings                      |
  '------------------------------'

The offsets are 32-bit integers on the older platforms and 64-bit integers on
Switch, PS4, Xbox One and PC; nothing in the file says which is which so it's
guessed looking at the offset of the sections table (that is always just after
the header, i.e. 8 or 16).

The number of sections and of strings are not stored either: since the tables
are contiguous they are derived from the distance between consecutive offsets.
'''
import logging
from typing import List, Optional

from ..enum import Compliant, Width
from ..encodings import TextCodec, Utf16Codec
from ..exceptions import FormatException, UnrecoverableException
from ..markup import Tag, ROOT_NAME
from ..streams import Stream


logger = logging.getLogger(__name__)


class MtxFile(object):

    def __init__(self, data=None, codec: Optional[TextCodec] = None, sections: Optional[List[List[Tag]]] = None,
                 width=Width.WIDTH32, compliant=Compliant.MAGIC):
        self.codec = codec if codec is not None else Utf16Codec(strict=bool(compliant & Compliant.MARKUP))
        self.sections = [list(_) for _ in sections] if sections is not None else []
        self.width = width
        self.compliant = compliant

        if data is not None:
            stream = data if isinstance(data, Stream) else Stream(data)
            logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)

    def __repr__(self):
        return '<%s(sections=%s, width=%s)>' % (
            self.__class__.__name__, [len(_) for _ in self.sections], self.width.name)

    @property
    def has_64bit_offsets(self) -> bool:
        return self.width == Width.WIDTH64

    @staticmethod
    def probe_width(stream: Stream) -> Width:
        '''Guess the size of the offsets: the offset of the sections table
        is at 0x4 (32-bit) or at 0x8 (64-bit) and it points just after itself.'''
        length = len(stream)

        if length >= 8 and stream.read_at(0x4, lambda s: s.read_int32()) == 8:
            return Width.WIDTH32

        if length >= 16 and stream.read_at(0x8, lambda s: s.read_int64()) == 16:
            return Width.WIDTH64

        raise FormatException('the offset of the sections table is neither at 0x4 nor at 0x8')

    @staticmethod
    def _peek_or(stream: Stream, width: Width, default: int) -> int:
        if stream.tell() + width.size > len(stream):
            return default

        return width.peek(stream)

    def _read_counts(self, offsets, end):
        counts = []
        for start, stop in zip(offsets, offsets[1:] + [end]):
            count, remainder = divmod(stop - start, self.width.size)
            if count < 0 or remainder:
                raise FormatException('the table at 0x%x is not followed by a table at a consistent offset (0x%x)' % (
                    start, stop))
            counts.append(count)

        return counts

    def unpack(self, stream: Stream):
        length = len(stream)

        if length < 8:
            raise FormatException('%d bytes are not enough for a header' % length)

        # the first field tells us the expected file size
        declared_length = stream.read_at(0, lambda s: s.read_int32())
        if declared_length != length:
            logger.warning('the file declares %d bytes but it has %d' % (declared_length, length))
            if self.compliant & Compliant.MAGIC:
                raise FormatException('the file declares %d bytes but it has %d' % (declared_length, length))

        self.width = self.probe_width(stream)
        logger.debug('using %s offsets' % self.width.name)

        stream.seek(self.width.size)
        table_position = self.width.read(stream)

        stream.seek(table_position)
        end = self._peek_or(stream, self.width, default=table_position)
        section_count = self._read_counts([table_position], end)[0]

        section_offsets = [self.width.read(stream) for _ in range(section_count)]
        data_position = self._peek_or(stream, self.width, default=length)
        string_counts = self._read_counts(section_offsets, data_position)

        logger.debug('found %d sections with %s strings' % (section_count, string_counts))

        string_offsets = []
        for offset, count in zip(section_offsets, string_counts):
            stream.seek(offset)
            string_offsets.append([self.width.read(stream) for _ in range(count)])

        self.sections = []
        for offsets in string_offsets:
            section = []
            for offset in offsets:
                # some files in the wild point outside of themselves
                if offset >= length:
                    logger.warning('string offset 0x%x is outside the file, using an empty string' % offset)
                    section.append(Tag(ROOT_NAME))
                    continue

                with stream.at(offset):
                    section.append(self.codec.decode(stream))

            self.sections.append(section)

    def pack(self) -> bytes:
        stream = Stream(b'')
        width = self.width

        # header, the length is filled in later
        width.write(stream, 0)
        width.write(stream, width.size * 2)

        position = stream.tell() + len(self.sections) * width.size
        for section in self.sections:
            width.write(stream, position)
            position += len(section) * width.size

        for section in self.sections:
            for text in section:
                width.write(stream, position)
                position += self.codec.byte_count(text)

        for section in self.sections:
            for text in section:
                self.codec.encode(stream, text)

        if position != len(stream):
            raise UnrecoverableException('the strings take %d bytes, %d were expected' % (len(stream), position))

        stream.write_at(0, lambda s: width.write(s, position))

        return stream.getvalue()

    def save(self, path):
        '''The file is written only after all the data has been packed.'''
        data = self.pack()

        with open(path, 'wb') as f:
            f.write(data)
