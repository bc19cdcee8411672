'''
# Markup trees

The text of the games is rich: plain characters are interleaved with tags that
change the color, insert variables or images, wait for the player and so on.
Independently from the binary encoding a text is represented as an ordered tree

    Tag('text')
     +- Run('Press ')
     +- Tag('color', {'value': '2'})
     |   +- Run('START')
     +- Tag('arrow')

where the root is always a tag named "text".

The human-editable counterpart of a tree is XML: to_markup_tree() and
from_markup_tree() convert between a Tag and an xml.etree.ElementTree.Element,
mapping runs to the text/tail of the elements.
'''
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Union


ROOT_NAME = 'text'


class Run(object):
    '''Plain characters, newlines included.'''

    def __init__(self, text: str):
        self.text = text
        self.parent = None

    def __repr__(self):
        return f'{self.__class__.__name__}({self.text!r})'

    def __eq__(self, other):
        return isinstance(other, Run) and self.text == other.text


class Tag(object):

    def __init__(self, name: str, attributes: Optional[Dict[str, str]] = None, children=None):
        self.name = name
        self.attributes = dict(attributes or {})
        self.children: List[Union['Tag', Run]] = []
        self.parent = None

        for child in children or []:
            self.append(child)

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name!r}, {self.attributes!r}, {self.children!r})'

    def __eq__(self, other):
        return (
            isinstance(other, Tag)
            and self.name == other.name
            and self.attributes == other.attributes
            and self.children == other.children
        )

    def __iter__(self):
        return iter(self.children)

    def __len__(self):
        return len(self.children)

    def __getitem__(self, item):
        return self.children[item]

    def __bool__(self):
        return True

    def append(self, node):
        node.parent = self
        self.children.append(node)

        return node

    @property
    def text(self) -> str:
        '''All the characters contained in the tree, tags are ignored.'''
        return ''.join(_.text for _ in self.children)


def to_markup_tree(tag: Tag) -> ET.Element:
    element = ET.Element(tag.name, dict(tag.attributes))
    last = None

    for child in tag.children:
        if isinstance(child, Run):
            if last is None:
                element.text = (element.text or '') + child.text
            else:
                last.tail = (last.tail or '') + child.text
        else:
            last = to_markup_tree(child)
            element.append(last)

    return element


def from_markup_tree(element: ET.Element) -> Tag:
    tag = Tag(element.tag, element.attrib)

    if element.text:
        tag.append(Run(element.text))

    for child in element:
        tag.append(from_markup_tree(child))
        if child.tail:
            tag.append(Run(child.tail))

    return tag
