"""
A Field is a "fundamental" datatype from the record point of view, something directly
packable/unpackable: fixed width words (StructField) and byte strings whose length
is stored elsewhere in the record (BytesField, TextField).
"""
import logging
import struct
from enum import Enum

from .meta import FieldBase
from .properties import Dependency
from .exceptions import EncodeError, FormatError, MagicError


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, name=None, father=None, default=None):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def get_chain(self):
        '''Starting chain for the exceptions raised by this field'''
        return [self.name] if self.name is not None else []

    def _get_value(self):
        return self._value

    def _set_value(self, value) -> None:
        self._value = value

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
    )

    def pack(self) -> bytes:
        self.logger.debug('packing %s' % self.name)
        return self.raw

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes.

    The "enum" argument takes a subclass of enum.Enum so to have directly a representation
    of the integer value of the field itself; a value outside the enumeration is a FormatError.

    With "is_magic" the unpacked value must be the default one otherwise MagicError is raised.
    """

    def __init__(self, format, default=0, enum=None, is_magic=False, **kw):
        self.format = format
        self.enum = enum
        self.is_magic = is_magic
        super().__init__(default=default, **kw)

    def __repr__(self):
        if not self.enum:
            return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

        return f'<{self.__class__.__name__}({self.value!r})>'

    def value_from_default(self):
        if not self.enum:
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '<%s' % self.format

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        value = self.value.value if isinstance(self.value, Enum) else self.value
        try:
            return struct.pack(self.get_format(), value)
        except struct.error as e:
            raise EncodeError(f'{value!r} does not fit format \'{self.format}\': {e}', chain=self.get_chain()) from e

    def _unpack_enum(self, value: int) -> Enum:
        try:
            return self.enum(value)
        except ValueError:
            raise FormatError(f'{self.enum.__name__} doesn\'t have element with value 0x{value:x} in it',
                              chain=self.get_chain()) from None

    def unpack(self, stream):
        raw = stream.read(self.size)
        value = struct.unpack(self.get_format(), raw)[0]

        if self.enum:
            value = self._unpack_enum(value)

        if self.is_magic and value != self.default:
            self.logger.warning('the magic doesn\'t correspond')
            raise MagicError(f'bad magic 0x{value:x}, this is not a columnar file', chain=self.get_chain())

        self.value = value


class BytesField(Field):
    """Represent a contiguous chunk of bytes.

    The length can be fixed or a Dependency on a sibling field: in the latter case
    setting the value updates the sibling."""

    def __init__(self, n, **kw):
        if not isinstance(n, (int, Dependency)):
            raise ValueError('n is \'%s\' must be of the right type' % n.__class__.__name__)

        self._n = n

        super().__init__(**kw)

    def __len__(self):
        return self.length

    @property
    def length(self) -> int:
        if not isinstance(self._n, Dependency):
            return self._n

        if self.father is None:
            return len(self.raw)

        return self._n.resolve(self)

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return b'' if isinstance(self._n, Dependency) else b'\x00' * self._n

    def _set_value(self, value) -> None:
        raw = self.to_raw(value)
        if isinstance(self._n, Dependency):
            if self.father is not None:
                self._n.resolve_and_set(self, len(raw))
        elif len(raw) != self._n:
            raise ValueError(f'you are trying to set a value with the wrong size (that is {self._n} bytes)')

        self._value = value

    def to_raw(self, value) -> bytes:
        return bytes(value)

    def from_raw(self, raw: bytes):
        return raw

    def _get_size(self):
        return len(self.raw)

    def _get_raw(self) -> bytes:
        return self.to_raw(self.value)

    def unpack(self, stream):
        # the length is already in place, no need to write it back
        self._value = self.from_raw(stream.read(self.length))


class TextField(BytesField):
    """Like BytesField but the value is a str stored with the given encoding."""

    def __init__(self, n, encoding='utf-8', **kw):
        self.encoding = encoding
        super().__init__(n, **kw)

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return '' if isinstance(self._n, Dependency) else '\x00' * self._n

    def to_raw(self, value) -> bytes:
        try:
            return value.encode(self.encoding)
        except (AttributeError, UnicodeEncodeError) as e:
            raise EncodeError(f'{value!r} is not encodable as {self.encoding}', chain=self.get_chain()) from e

    def from_raw(self, raw: bytes):
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise FormatError(f'{raw!r} is not valid {self.encoding}', chain=self.get_chain()) from e
