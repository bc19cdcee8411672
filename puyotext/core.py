"""
Core module for the abstraction of a binary record

"""
import logging
from typing import Tuple, List, Dict

from .fields import Field
from .meta import MetaChunk
from .streams import Stream
from .exceptions import PuyoTextException


logger = logging.getLogger(__name__)


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: its main attributes
    are offset and size that identify a Chunk.

    A Chunk is an ordered sequence of fields (and other chunks) laid out one after the
    other without holes, the formats use them to describe their fixed-stride records

        class Header(Chunk):
            magic  = fields.StringField(4, default=b'DATA', is_magic=True)
            length = fields.StructField('I')

    and the offsets of the fields are available via the layout property, useful
    when a pointer must reference a field of a record not yet written.
    """

    def __init__(self, data=None, **kwargs):
        super().__init__(**kwargs)

        # now we have setup all the fields necessary and we can unpack if
        # some data is passed with the constructor
        if data is not None:
            stream = data if isinstance(data, Stream) else Stream(data)
            logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)
        else:
            self.relayout(offset=self.offset or 0)

    def init(self):
        pass

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        msg = []
        for field_name, field in self.get_fields():
            msg.append('%s=%s' % (field_name, repr(field)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def __str__(self):
        msg = ''
        for field_name, field in self.get_fields():
            msg += '%s: %s\n' % (field_name, repr(field))
        return msg

    def _get_value(self):
        return dict((name, field.value) for name, field in self.get_fields())

    def _set_value(self, value):
        for name, field_value in value.items():
            getattr(self, name).value = field_value

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_size(self):
        '''the size parameter MUST not be set but MUST be derived from the subchunks'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    def _get_raw(self) -> bytes:
        value = b''
        for field_name, field_instance in self.get_fields():
            field_raw = field_instance.raw
            logger.debug("field '{}' raw={}".format(field_name, field_raw))
            value += field_raw

        return value

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        '''Offset (relative to the start of the chunk) and size of each field.'''
        result = {}
        offset = 0
        for name, field in self.get_fields():
            result[name] = (offset, field.size)
            offset += field.size

        return result

    def offset_of(self, name: str) -> int:
        return self.layout[name][0]

    def get_relocations(self) -> List[int]:
        '''Absolute positions of the pointers that need an entry in the offset
        table, valid after the chunk has been packed (or relayouted).'''
        pointers = [getattr(self, _) for _ in self._meta.pointers]

        return [_.offset for _ in pointers if _.is_relocated()]

    def relayout(self, offset=0):
        '''This method triggers the chunk's children to reset the offsets.'''
        self.offset = offset

        size = 0
        for field_name, field_instance in self.get_fields():
            logger.debug('relayouting %s.%s' % (self.__class__.__name__, field_name))
            size += field_instance.relayout(offset=offset + size)

        return size

    def pack(self, stream=None):
        '''Write all the fields starting from the current position of the stream;
        the offsets of the fields are updated accordingly.'''
        stream = Stream(b'') if stream is None else stream

        self.relayout(offset=stream.tell())

        for field_name, field_instance in self.get_fields():
            logger.debug('packing %s.%s at offset 0x%08x' % (
                self.__class__.__name__, field_name, field_instance.offset))
            field_instance.pack(stream=stream)

        return stream

    def unpack(self, stream):
        '''This is one of the main APIs to take care of: its aim is to take a binary
        data and transform in the representation given by the class this method
        is implemented.

        The fields are read one after the other from the actual position of the
        stream; in case of errors the name of the field is appended to the chain
        of the exception, so that the caller knows where the thing went wrong.
        '''
        self.offset = stream.tell()
        for field_name, field in self.get_fields():
            logger.debug('unpacking %s.%s at offset 0x%08x' % (self.__class__.__name__, field_name, stream.tell()))

            try:
                field.unpack(stream)
            except PuyoTextException as e:
                if not e.chain or e.chain[-1] != field_name:
                    e.chain.append(field_name)
                raise
