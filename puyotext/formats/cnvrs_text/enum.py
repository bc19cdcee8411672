from enum import Enum


class TextAlignment(Enum):
    '''Horizontal alignment of the text'''
    LEFT    = 0
    CENTER  = 1
    RIGHT   = 2
    UNKNOWN = 3  # first appeared in Sonic Frontiers


class VerticalAlignment(Enum):
    TOP    = 0
    MIDDLE = 1
    BOTTOM = 2


class Fit(Enum):
    '''How the text is resized when it exceeds the bounds of its container'''
    NONE       = 0
    SCALE_DOWN = 1
    CONDENSE   = 2
