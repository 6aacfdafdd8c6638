import logging
import os
import struct

from bitstring import ConstBitStream, ReadError

from .exceptions import TruncationError, SourceError, SinkError


logger = logging.getLogger(__name__)

# every count, length and offset in the format is an unsigned 64 bit word
WORD_SIZE = 8


def pack_word(value: int) -> bytes:
    '''Unsigned 64 bit little endian representation of value'''
    return struct.pack('<Q', value)


def read_all(path) -> bytes:
    '''Read the whole resource at path in memory.'''
    logger.debug('reading \'%s\'' % path)
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise SourceError('cannot read \'%s\': %s' % (path, e.strerror or e)) from e


def write_all(target, data: bytes) -> None:
    '''Write the whole buffer to a path (created or truncated) or to
    an object with a write() method.'''
    if hasattr(target, 'write'):
        logger.debug('writing %d bytes to %r' % (len(data), target))
        try:
            target.write(data)
        except OSError as e:
            raise SinkError('cannot write to %r: %s' % (target, e.strerror or e)) from e
        return

    logger.debug('writing %d bytes to \'%s\'' % (len(data), target))
    try:
        with open(target, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise SinkError('cannot write \'%s\': %s' % (target, e.strerror or e)) from e


class Stream(object):
    '''This is a simple wrapper around bytes-like objects (or a path) to
    read them sequentially as little endian words and byte strings.

    Reading past the end raises TruncationError, it never returns
    less than what was asked.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be read by bitstring'''
        if isinstance(obj, os.PathLike):
            obj = os.fspath(obj)

        self._type = type(obj)
        self.obj = obj

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' cannot be used as a stream' % self._type.__name__)

        init_method()

    def __repr__(self):
        return '<%s(%s, pos=%d, size=%d)>' % (self.__class__.__name__, self._type.__name__, self.tell(), self.size)

    def init_str(self):
        '''We think this is a path'''
        self.obj = ConstBitStream(bytes=read_all(self.obj))

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = ConstBitStream(bytes=self.obj)

    def init_bytearray(self):
        self.obj = ConstBitStream(bytes=bytes(self.obj))

    def init_memoryview(self):
        self.obj = ConstBitStream(bytes=self.obj.tobytes())

    @property
    def size(self) -> int:
        return self.obj.len // 8

    @property
    def remaining(self) -> int:
        return self.size - self.tell()

    def at_end(self) -> bool:
        return self.remaining == 0

    def tell(self) -> int:
        return self.obj.bytepos

    def seek(self, offset: int) -> None:
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        if offset < 0 or offset > self.size:
            raise TruncationError('offset %d is outside a stream of %d bytes' % (offset, self.size))

        self.obj.bytepos = offset

    def _truncated(self, n):
        return TruncationError('expected %d bytes at offset %d but only %d are available' % (
            n, self.tell(), self.remaining))

    def read(self, n: int) -> bytes:
        if n == 0:
            return b''

        if n > self.remaining:
            raise self._truncated(n)

        try:
            return self.obj.read('bytes:%d' % n)
        except ReadError as e:
            raise self._truncated(n) from e

    def read_word(self) -> int:
        '''Read an unsigned 64 bit little endian integer'''
        try:
            return self.obj.read('uintle:64')
        except ReadError as e:
            raise self._truncated(WORD_SIZE) from e

    def read_signed_word(self) -> int:
        try:
            return self.obj.read('intle:64')
        except ReadError as e:
            raise self._truncated(WORD_SIZE) from e

    def read_all(self) -> bytes:
        '''Return all the data from the actual position to the end.'''
        return self.read(self.remaining)
