from enum import Enum, Flag


class DType(Enum):
    '''Type tag of a column: the value is persisted in the header records,
    do not change the sequence.'''
    STRING  = 1
    INT     = 2
    FLOAT   = 3
    INTS    = 4
    STRINGS = 5

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> 'DType':
        try:
            return cls[label.upper()]
        except KeyError:
            raise ValueError(f'\'{label}\' is not a known column type') from None

    def __str__(self):
        return self.label


class Compliant(Flag):
    '''It indicates which structural violations are fatal instead of being logged'''
    NONE    = 0
    TYPE    = 1 << 0  # a column changing type between rows
    FRAMING = 1 << 1  # an entry cut short at the end of a column
    STRICT  = TYPE | FRAMING
