import logging
from typing import Optional

from ..markup import Tag, Run
from ..markup.builder import TreeBuilder
from ..streams import Stream
from ..exceptions import MarkupException, UnsupportedTagException


logger = logging.getLogger(__name__)


class TextCodec(object):
    '''Translate a markup tree from/to a stream of 16-bit tokens.

    The subclasses implement decode() and encode(), the size of the encoded
    tree is obtained encoding it for real in a scratch stream.'''
    name = None

    def __init__(self, strict=False):
        self.strict = strict

    def __repr__(self):
        return f'<{self.__class__.__name__}>'

    def create_builder(self) -> TreeBuilder:
        return TreeBuilder(strict=self.strict)

    def decode(self, stream: Stream, count: Optional[int] = None) -> Tag:
        raise NotImplementedError()

    def encode(self, stream: Stream, tree: Tag) -> None:
        raise NotImplementedError()

    def byte_count(self, tree: Tag) -> int:
        return len(self.encode_bytes(tree))

    def encode_bytes(self, tree: Tag) -> bytes:
        stream = Stream(b'')
        self.encode(stream, tree)

        return stream.getvalue()

    def decode_bytes(self, data: bytes, count: Optional[int] = None) -> Tag:
        return self.decode(Stream(data), count=count)

    def encode_children(self, stream: Stream, tag: Tag) -> None:
        for node in tag.children:
            if isinstance(node, Run):
                self.encode_text(stream, node.text)
            else:
                handler = getattr(self, 'encode_tag_%s' % node.name, None)
                if handler is None:
                    raise UnsupportedTagException('%s cannot encode the tag \'%s\'' % (
                        self.__class__.__name__, node.name))
                handler(stream, node)

    def encode_text(self, stream: Stream, text: str) -> None:
        raise NotImplementedError()


def get_attribute(tag: Tag, name: str) -> str:
    try:
        return tag.attributes[name]
    except KeyError:
        raise MarkupException('the tag \'%s\' needs the attribute \'%s\'' % (tag.name, name))


def get_uint16_attribute(tag: Tag, name: str) -> int:
    value = get_attribute(tag, name)
    try:
        number = int(value)
    except ValueError:
        raise MarkupException('the attribute \'%s\' of \'%s\' is not a number: %r' % (name, tag.name, value))

    if not 0 <= number <= 0xffff:
        raise MarkupException('the attribute \'%s\' of \'%s\' must fit in 16 bits: %d' % (name, tag.name, number))

    return number


def iter_utf16_units(text: str):
    raw = text.encode('utf-16-le', 'surrogatepass')
    for idx in range(0, len(raw), 2):
        yield raw[idx] | (raw[idx + 1] << 8)
