import logging

from . import Tag, Run, ROOT_NAME
from ..exceptions import MarkupException


logger = logging.getLogger(__name__)


class TreeBuilder(object):
    '''Build a markup tree from the linear sequence of events a decoder produces.

    The characters are accumulated and become a Run only when a tag arrives (or
    at the end), so that consecutive characters end up in the same Run.

    Real data is not always well formed: by default closing a tag when nothing
    is open does nothing and the tags still open at the end are closed,
    both with a warning; with strict=True both cases raise MarkupException.'''

    def __init__(self, root=None, strict=False):
        self.root = root if root is not None else Tag(ROOT_NAME)
        self.current = self.root
        self.strict = strict
        self._pending = []

    def _flush(self):
        if not self._pending:
            return

        text = ''.join(self._pending)
        self._pending.clear()
        # the decoders work with UTF-16 units, here we join the surrogate pairs
        text = text.encode('utf-16-le', 'surrogatepass').decode('utf-16-le', 'surrogatepass')

        self.current.append(Run(text))

    def push(self, tag: Tag) -> Tag:
        self.add_leaf(tag)
        self.current = tag

        return tag

    def pop(self) -> Tag:
        self._flush()

        if self.current.parent is None:
            if self.strict:
                raise MarkupException('closing a tag but no tag is open')

            logger.warning('closing a tag but no tag is open, ignoring')
            return self.current

        tag = self.current
        self.current = tag.parent

        return tag

    def add_text(self, text: str):
        self._pending.append(text)

    def add_leaf(self, tag: Tag) -> Tag:
        self._flush()

        return self.current.append(tag)

    def collapse_current(self):
        '''Close the current tag and move its children after it, into the parent.

        The tag itself is kept, empty, where it was.'''
        if self.current.parent is None:
            self._flush()
            return

        tag = self.pop()
        children = list(tag.children)
        tag.children.clear()

        for child in children:
            self.current.append(child)

    def finish(self) -> Tag:
        self._flush()

        if self.current is not self.root:
            if self.strict:
                raise MarkupException('tag \'%s\' is not closed' % self.current.name)

            while self.current is not self.root:
                logger.warning('closing tag \'%s\' implicitly' % self.current.name)
                self.current = self.current.parent

        return self.root
