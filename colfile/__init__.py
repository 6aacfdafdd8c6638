"""
# colfile, a self-describing columnar file format.

A file is a set of named columns, each one with a type fixed at its first
write, filled row by row: every row writes a value to some (not necessarily
all) of the columns, and every value remembers the index of the row that
wrote it.

Two basic main operations are defined for the file:

 1. pack(): lay out the columns as a prologue (magic, versions, directory
    of the columns with type, offset and length) followed by the data of
    each column.

 2. unpack(): validate the prologue, read the directory and slice the data
    of each column out of the buffer without copying it.

The values of a column are decoded only when iterating over it.

All the integers are 64 bits little endian.
"""
