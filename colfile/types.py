"""
Codec of the values that can be stored in a column.

Every value is encoded on its own, without external framing:

 - Int: 8 bytes, signed 64 bit little endian
 - Float: 8 bytes, IEEE-754 binary64 bit pattern little endian
 - String: UTF-8 text (str, or bytes already UTF-8), always read back as str, no length prefix
 - Ints: count (8 bytes) followed by count signed 64 bit words
 - Strings: count (8 bytes) followed by count (length (8 bytes), bytes) pairs

The length of a String comes from the entry containing it, the list
types carry their own counts so they can be decoded anywhere.
"""
import logging
import struct
from typing import Any, Dict, List, Type

from .enum import DType
from .exceptions import EncodeError, DecodeError, TruncationError
from .streams import Stream, WORD_SIZE, pack_word


logger = logging.getLogger(__name__)


class TypedValue(object):
    '''Base class of the column values.'''
    dtype: DType = None

    def __init__(self, value=None):
        self.value = self.value_from_default() if value is None else value

    def value_from_default(self):
        raise NotImplementedError()

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def __eq__(self, other):
        if not isinstance(other, TypedValue):
            return NotImplemented

        return self.dtype == other.dtype and self.value == other.value

    def type(self) -> DType:
        return self.dtype

    def encode(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}.encode() not implemented")

    def decode(self, raw: bytes) -> 'TypedValue':
        '''Set the value from its binary representation, returns the instance itself'''
        raise NotImplementedError(f"method {self.__class__.__name__}.decode() not implemented")

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'TypedValue':
        return cls().decode(raw)


class Int(TypedValue):
    dtype = DType.INT

    def value_from_default(self):
        return 0

    def encode(self) -> bytes:
        try:
            return struct.pack('<q', self.value)
        except struct.error as e:
            raise EncodeError(f'{self.value!r} is not a signed 64 bit integer') from e

    def decode(self, raw: bytes) -> 'Int':
        if len(raw) != WORD_SIZE:
            raise DecodeError(f'an int needs {WORD_SIZE} bytes, found {len(raw)}')

        self.value = struct.unpack('<q', raw)[0]

        return self


class Float(TypedValue):
    dtype = DType.FLOAT

    def value_from_default(self):
        return 0.0

    def encode(self) -> bytes:
        try:
            return struct.pack('<d', self.value)
        except struct.error as e:
            raise EncodeError(f'{self.value!r} is not a float') from e

    def decode(self, raw: bytes) -> 'Float':
        if len(raw) != WORD_SIZE:
            raise DecodeError(f'a float needs {WORD_SIZE} bytes, found {len(raw)}')

        self.value = struct.unpack('<d', raw)[0]

        return self


def _encode_text(value) -> bytes:
    '''Strings are text: str is encoded as UTF-8, bytes must already be UTF-8
    so that what is written always reads back'''
    if isinstance(value, str):
        try:
            return value.encode('utf-8')
        except UnicodeEncodeError as e:
            raise EncodeError(f'{value!r} is not encodable as utf-8') from e
    elif isinstance(value, (bytes, bytearray)):
        try:
            bytes(value).decode('utf-8')
        except UnicodeDecodeError as e:
            raise EncodeError(f'{bytes(value)!r} is not valid utf-8') from e

        return bytes(value)

    raise EncodeError(f'{value!r} is not a string')


def _decode_text(raw: bytes) -> str:
    try:
        return bytes(raw).decode('utf-8')
    except UnicodeDecodeError as e:
        raise DecodeError(f'{bytes(raw)!r} is not valid utf-8') from e


class String(TypedValue):
    dtype = DType.STRING

    def value_from_default(self):
        return ''

    def encode(self) -> bytes:
        return _encode_text(self.value)

    def decode(self, raw: bytes) -> 'String':
        self.value = _decode_text(raw)

        return self


class ListValue(TypedValue):
    '''Count prefixed sequence: decoding must consume the region exactly.'''

    def value_from_default(self):
        return []

    def encode(self) -> bytes:
        if not isinstance(self.value, (list, tuple)):
            raise EncodeError(f'{self.value!r} is not a list')

        return pack_word(len(self.value)) + b''.join(self.encode_item(_) for _ in self.value)

    def encode_item(self, item) -> bytes:
        raise NotImplementedError()

    def decode_item(self, stream: Stream):
        raise NotImplementedError()

    def decode(self, raw: bytes) -> 'ListValue':
        stream = Stream(raw)
        try:
            count = stream.read_word()
            # every item takes at least a word
            if count * WORD_SIZE > stream.remaining:
                raise DecodeError(f'{count} items cannot fit in {stream.remaining} bytes')

            items = [self.decode_item(stream) for _ in range(count)]
        except TruncationError as e:
            raise DecodeError(f'truncated {self.dtype} value: {e}') from e

        if not stream.at_end():
            raise DecodeError(f'{stream.remaining} unexpected bytes after {self.dtype} value')

        self.value = items

        return self


class Ints(ListValue):
    dtype = DType.INTS

    def encode_item(self, item) -> bytes:
        try:
            return struct.pack('<q', item)
        except struct.error as e:
            raise EncodeError(f'{item!r} is not a signed 64 bit integer') from e

    def decode_item(self, stream: Stream) -> int:
        return stream.read_signed_word()


class Strings(ListValue):
    dtype = DType.STRINGS

    def encode_item(self, item) -> bytes:
        raw = _encode_text(item)
        return pack_word(len(raw)) + raw

    def decode_item(self, stream: Stream) -> str:
        return _decode_text(stream.read(stream.read_word()))


TYPES: Dict[DType, Type[TypedValue]] = {
    DType.STRING: String,
    DType.INT: Int,
    DType.FLOAT: Float,
    DType.INTS: Ints,
    DType.STRINGS: Strings,
}


def typed(obj: Any) -> TypedValue:
    '''Wrap a plain python value with the TypedValue representing it.

    Empty lists are refused since there is no way to know the type of the items,
    use Ints([]) or Strings([]) explicitly.'''
    if isinstance(obj, TypedValue):
        return obj

    if isinstance(obj, int):
        return Int(int(obj))
    elif isinstance(obj, float):
        return Float(obj)
    elif isinstance(obj, (str, bytes, bytearray)):
        return String(obj)
    elif isinstance(obj, (list, tuple)) and obj:
        items: List[Any] = list(obj)
        if all(isinstance(_, int) for _ in items):
            return Ints(items)
        if all(isinstance(_, (str, bytes, bytearray)) for _ in items):
            return Strings(items)

    raise EncodeError(f'cannot infer the column type of {obj!r}')


def decode_value(dtype: DType, raw: bytes) -> Any:
    '''Plain python value of the encoded value of the given type'''
    return TYPES[dtype].from_bytes(raw).value
