class ColumnarException(Exception):
    '''Base class to extend in order to throw exception in colfile.

    Other than the message it takes the chain of the layers that
    the exception crossed (field names, column names), outermost first.
    '''

    def __init__(self, message='', chain=None):
        self.message = message
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        if not self.chain:
            return self.message

        return '%s: %s' % ('.'.join(self.chain), self.message)


class FormatError(ColumnarException):
    '''The data doesn't describe a valid columnar file.'''
    pass


class MagicError(FormatError):
    pass


class VersionError(FormatError):
    pass


class TypeMismatchError(FormatError):
    '''A column is written with a type different from the one it was created with.'''
    pass


class TruncationError(ColumnarException):
    '''A length prefix demands more bytes than there are available.'''
    pass


class EncodeError(ColumnarException):
    pass


class DecodeError(ColumnarException):
    pass


class SourceError(ColumnarException):
    pass


class SinkError(ColumnarException):
    pass


class ReadOnlyError(ColumnarException):
    '''Parsed files are views over the input and cannot be written to.'''
    pass
