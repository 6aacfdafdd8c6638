import logging
from collections import namedtuple
from typing import Iterator, List, Tuple

from .enum import DType, Compliant
from .exceptions import ColumnarException, ReadOnlyError, TruncationError
from .streams import Stream, pack_word
from .types import TypedValue, decode_value


logger = logging.getLogger(__name__)


Entry = namedtuple('Entry', ['row', 'value'])


class Column(object):
    '''Append only sequence of entries for a named column.

    Each entry is made of the length of the encoded value, the index of the
    row that wrote it and the encoded value itself, all packed one after
    the other with no padding.

    A column built by writing owns its buffer, a column coming from a parsed
    file is a read-only view over the parsed data.'''

    def __init__(self, name: str, dtype: DType, data=None, compliant=Compliant.STRICT):
        self.name = name
        self.dtype = DType(dtype)
        self.compliant = compliant
        self.readonly = data is not None
        self._data = bytearray() if data is None else memoryview(data).toreadonly()

    def __repr__(self):
        return '<%s(%s, %s, size=%d)>' % (self.__class__.__name__, self.name, self.dtype, self.size)

    @property
    def data(self):
        return self._data

    @property
    def size(self) -> int:
        return len(self._data)

    def append(self, row: int, value) -> None:
        '''Append the entry for the row; value is a TypedValue or an already encoded one'''
        if self.readonly:
            raise ReadOnlyError(f'column \'{self.name}\' is read-only', chain=[self.name])

        raw = value.encode() if isinstance(value, TypedValue) else bytes(value)
        # a single extend so that a failure never leaves half an entry behind
        self._data += pack_word(len(raw)) + pack_word(row) + raw

    def _frames(self) -> Iterator[Tuple[int, bytes]]:
        stream = Stream(self._data)
        while not stream.at_end():
            offset = stream.tell()
            try:
                length = stream.read_word()
                row = stream.read_word()
                raw = stream.read(length)
            except TruncationError as e:
                if self.compliant & Compliant.FRAMING:
                    e.chain.insert(0, self.name)
                    raise

                logger.warning('column \'%s\' has a truncated entry at offset %d, stopping' % (self.name, offset))
                return

            yield row, raw

    def entries(self) -> Iterator[Entry]:
        '''Decode each entry with the row that wrote it'''
        for row, raw in self._frames():
            try:
                value = decode_value(self.dtype, raw)
            except ColumnarException as e:
                e.chain.insert(0, self.name)
                raise

            yield Entry(row, value)

    def __iter__(self):
        for entry in self.entries():
            yield entry.value

    def __len__(self):
        return sum(1 for _ in self._frames())

    def values(self) -> List:
        return list(self)

    def rows(self) -> List[int]:
        return [row for row, _ in self._frames()]
