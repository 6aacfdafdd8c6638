"""
Core module for the declaration of the fixed layout records of the format

"""
from typing import Tuple, List, Dict

from .fields import Field
from .meta import MetaChunk
from .streams import Stream
from .exceptions import ColumnarException


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a record: the fields declared
    in the class body are packed and unpacked in declaration order, one after the other.

        class Pair(Chunk):
            first = fields.StructField('Q')
            second = fields.StructField('Q')

        Pair(first=1, second=2).pack()  # 16 bytes
        Pair(b'...')                    # unpacks immediately

    An optional validate() method is called after a successful unpack.
    """

    def __init__(self, source=None, **kwargs):
        values = {_: kwargs.pop(_) for _ in list(kwargs) if _ in self._meta.fields}

        super().__init__(**kwargs)

        for field_name, value in values.items():
            setattr(self, field_name, value)

        # now we have setup all the fields necessary and we can unpack if
        # some data is passed with the constructor
        if source is not None:
            stream = source if isinstance(source, Stream) else Stream(source)
            self.logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)

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

    def init(self):
        for _, field in self.get_fields():
            field.init()

    def _get_value(self) -> Dict[str, object]:
        return {name: field.value for name, field in self.get_fields()}

    def _set_value(self, value) -> None:
        for field_name, field_value in value.items():
            setattr(self, field_name, field_value)

    def _get_size(self):
        '''the size MUST be derived from the fields'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    def _get_raw(self) -> bytes:
        value = b''
        for field_name, field_instance in self.get_fields():
            field_raw = field_instance.raw
            self.logger.debug("field '{}' raw={}".format(field_name, field_raw))
            value += field_raw

        return value

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        '''Offset and size of each field with respect to the start of the chunk'''
        result = {}
        offset = 0
        for name, field in self.get_fields():
            result[name] = (offset, field.size)
            offset += field.size

        return result

    def unpack(self, stream):
        '''Read each field from the stream; an error raised by a field gets the
        name of the field prepended to its chain.'''
        for field_name, field in self.get_fields():
            self.logger.debug('unpacking %s.%s at offset %d' % (self.__class__.__name__, field_name, stream.tell()))

            try:
                field.unpack(stream)
            except ColumnarException as e:
                if not e.chain or e.chain[0] != field_name:
                    e.chain.insert(0, field_name)
                raise

        if hasattr(self, 'validate'):
            self.validate()
