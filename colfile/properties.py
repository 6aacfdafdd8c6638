import logging


class Dependency:
    '''This makes the relation between sibling fields possible.

    In practice this class allows to write something like

        class Simple(Chunk):
            length = fields.StructField('Q')
            data = fields.BytesField(Dependency('.length'))

    and have the length of the string contained in the field named 'data'
    strictly connected to the field named 'length': unpacking reads it from
    there, setting a new value writes the new length back.

    The expression starts with '.' to indicate a field at the same level,
    further components descend into sub-chunks.
    '''
    def __init__(self, expression):
        if not expression.startswith('.'):
            raise ValueError(f"'{expression}' must start with '.'")

        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        if instance.father is None:
            raise AttributeError(f"cannot resolve '{self.expression}' for a field without father")

        field = instance.father
        # '.miao'.split(".") -> ['', 'miao']
        for component_name in self.expression.split('.')[1:]:
            field = getattr(field, component_name)

        self.logger.debug(' resolved \'%s\' as field %s' % (self.expression, field.__class__.__name__))

        return field

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        return self.resolve_field(instance).value

    def resolve_and_set(self, instance, value):
        self.resolve_field(instance).value = value
