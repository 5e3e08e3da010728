'''
# Colors

A color is stored on disk as four bytes in the order alpha, red, green, blue.
Pillow orders the channels the other way around (RGBA) so here we provide the
conversions in both directions.
'''
from collections import namedtuple

from PIL import ImageColor


class Color(namedtuple('Color', ['alpha', 'red', 'green', 'blue'])):
    __slots__ = ()

    @classmethod
    def from_rgba(cls, rgba):
        '''Build from a Pillow-like tuple: the alpha defaults to opaque.'''
        if len(rgba) == 3:
            red, green, blue = rgba
            alpha = 0xff
        else:
            red, green, blue, alpha = rgba

        return cls(alpha, red, green, blue)

    @classmethod
    def from_name(cls, name):
        '''Parse any color specification understood by Pillow like 'red' or '#336699cc'.'''
        return cls.from_rgba(ImageColor.getcolor(name, 'RGBA'))

    @property
    def rgba(self):
        return (self.red, self.green, self.blue, self.alpha)

    @property
    def argb(self):
        return bytes(self)

    def __str__(self):
        return '#%02x%02x%02x%02x' % (self.alpha, self.red, self.green, self.blue)
