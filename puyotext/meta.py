import copy
import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()


class FieldDescriptor(object):
    """Give each record its own copy of a declared field.

    Reading the attribute from the class returns the declared field, from an
    instance the copy (created at the first access); assigning a field replaces
    the copy, assigning anything else sets its value."""

    def __init__(self, field_instance: "Field", field_name: str):
        self.field = field_instance
        self.field.name = field_name

    def __get__(self, instance, type=None):
        if instance is None:
            return self.field

        try:
            return instance.__dict__[self.field.name]
        except KeyError:
            logger.debug("create new field for field named '%s'", self.field.name)
            field = self.field.create(father=instance)
            instance.__dict__[self.field.name] = field

            return field

    def __set__(self, instance, value):
        if not isinstance(value, self.field.__class__):
            self.__get__(instance).value = value
            return

        value.father = instance
        value.name = self.field.name
        instance.__dict__[self.field.name] = value


class FieldBase(object):
    is_pointer = False

    def contribute_to_chunk(self, cls, name):
        if getattr(cls, name, None):
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')

        setattr(cls, name, FieldDescriptor(self, name))

    def create(self, father):
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class Meta(object):
    """What a Chunk class knows about its declaration: the names of all the
    fields in order and, among them, the ones that are pointers."""

    def __init__(self):
        self.fields = []
        self.pointers = []

    def add(self, name, field):
        self.fields.append(name)
        if field.is_pointer:
            self.pointers.append(name)


class MetaChunk(type):

    def __new__(cls, names, bases, attrs):
        '''The fields are removed from the class attributes and collected,
        in order of declaration, into _meta (the fields of the parents
        come first).'''
        module = attrs.pop('__module__')
        classcell = attrs.pop('__classcell__', None)

        new_attrs = {
            '__module__': module,
        }
        if classcell is not None:
            new_attrs['__classcell__'] = classcell
        new_cls = super(MetaChunk, cls).__new__(cls, names, bases, new_attrs)

        new_cls._meta = Meta()

        for parent in [_ for _ in bases if isinstance(_, MetaChunk)]:
            for obj_name in parent._meta.fields:
                descriptor = parent.__dict__[obj_name]
                setattr(new_cls, obj_name, descriptor)
                new_cls._meta.add(obj_name, descriptor.field)

        for obj_name, obj in attrs.items():
            new_cls.add_to_class(obj_name, obj)

        return new_cls

    def add_to_class(cls, name, value):
        if not isinstance(value, FieldBase):
            setattr(cls, name, value)
            return

        logger.debug('adding field \'%s\' to %s' % (name, cls.__name__))
        value.contribute_to_chunk(cls, name)
        cls._meta.add(name, value)
