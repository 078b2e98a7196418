import enum


class TypeFlags(enum.IntFlag):
    NONE = 0
    ANY = 1 << 0
    UNKNOWN = 1 << 1
    STRING = 1 << 2
    NUMBER = 1 << 3
    BOOLEAN = 1 << 4
    BIGINT = 1 << 5
    ES_SYMBOL = 1 << 6
    VOID = 1 << 7
    UNDEFINED = 1 << 8
    NULL = 1 << 9
    NEVER = 1 << 10
    NON_PRIMITIVE = 1 << 11
    STRING_LITERAL = 1 << 12
    NUMBER_LITERAL = 1 << 13
    BOOLEAN_LITERAL = 1 << 14
    OBJECT = 1 << 15
    UNION = 1 << 16
    INTERSECTION = 1 << 17
    TYPE_PARAMETER = 1 << 18
    OPAQUE = 1 << 19

    NULLABLE = UNDEFINED | NULL
    LITERAL = STRING_LITERAL | NUMBER_LITERAL | BOOLEAN_LITERAL
    PRIMITIVE = ANY | UNKNOWN | STRING | NUMBER | BOOLEAN | BIGINT | ES_SYMBOL | VOID | UNDEFINED | NULL | NEVER


INTRINSIC_FLAGS = {
    "any": TypeFlags.ANY,
    "unknown": TypeFlags.UNKNOWN,
    "string": TypeFlags.STRING,
    "number": TypeFlags.NUMBER,
    "boolean": TypeFlags.BOOLEAN,
    "bigint": TypeFlags.BIGINT,
    "symbol": TypeFlags.ES_SYMBOL,
    "unique symbol": TypeFlags.ES_SYMBOL,
    "void": TypeFlags.VOID,
    "undefined": TypeFlags.UNDEFINED,
    "null": TypeFlags.NULL,
    "never": TypeFlags.NEVER,
    "object": TypeFlags.NON_PRIMITIVE,
}


class Type:
    flags = TypeFlags.NONE

    def __init__(self):
        self.symbol = None
        self.alias_symbol = None
        self.alias_type_arguments = None

    def get_flags(self):
        return self.flags

    def get_symbol(self):
        return self.symbol

    def is_union(self):
        return False

    def is_intersection(self):
        return False


class IntrinsicType(Type):
    def __init__(self, name):
        super().__init__()
        self.name = name
        self.flags = INTRINSIC_FLAGS[name]

    def __repr__(self):
        return f"IntrinsicType({self.name})"


class LiteralType(Type):
    def __init__(self, value):
        super().__init__()
        self.value = value
        if isinstance(value, bool):
            self.flags = TypeFlags.BOOLEAN_LITERAL
        elif isinstance(value, (int, float)):
            self.flags = TypeFlags.NUMBER_LITERAL
        else:
            self.flags = TypeFlags.STRING_LITERAL

    def __repr__(self):
        return f"LiteralType({self.value!r})"


class UnionOrIntersectionType(Type):
    def __init__(self, types):
        super().__init__()
        self.types = list(types)
        self.resolved_properties = None


class UnionType(UnionOrIntersectionType):
    flags = TypeFlags.UNION

    def is_union(self):
        return True


class IntersectionType(UnionOrIntersectionType):
    flags = TypeFlags.INTERSECTION

    def is_intersection(self):
        return True


class TypeParameter(Type):
    flags = TypeFlags.TYPE_PARAMETER

    def __init__(self, name, constraint=None):
        super().__init__()
        self.name = name
        self.constraint = constraint


class Signature:
    def __init__(self, parameters, return_type, type_parameters=None):
        # parameters: list of (name, type, optional, rest)
        self.parameters = parameters
        self.return_type = return_type
        self.type_parameters = type_parameters or []


class IndexInfo:
    def __init__(self, key_name, key_type, type, readonly=False):
        self.key_name = key_name
        self.key_type = key_type
        self.type = type
        self.readonly = readonly


class ObjectType(Type):
    """Interface instantiations and anonymous object shapes; members resolve lazily."""

    flags = TypeFlags.OBJECT

    def __init__(self, symbol=None, type_arguments=None, resolver=None):
        super().__init__()
        self.symbol = symbol
        self.type_arguments = list(type_arguments or [])
        self.resolver = resolver
        self.members = None
        self.call_signatures = []
        self.index_infos = []

    def resolve_members(self):
        if self.members is None:
            self.members = {}
            if self.resolver is not None:
                members, calls, indexes = self.resolver()
                self.members.update(members)
                self.call_signatures = calls
                self.index_infos = indexes
        return self.members


class ArrayType(ObjectType):
    def __init__(self, element_type, readonly=False):
        super().__init__()
        self.element_type = element_type
        self.readonly = readonly
        self.type_arguments = [element_type]
        self.members = {}


class TupleType(ObjectType):
    def __init__(self, element_types, labels=None, readonly=False):
        super().__init__()
        # element_types: list of (type, optional, rest)
        self.element_types = element_types
        self.labels = labels or [None] * len(element_types)
        self.readonly = readonly
        self.type_arguments = [t for t, _, _ in element_types]
        self.members = {}


class OpaqueType(Type):
    """A type whose structure is not modeled; printed as written."""

    flags = TypeFlags.OPAQUE

    def __init__(self, text, name=None, type_arguments=None, symbol=None):
        super().__init__()
        self.text = text
        self.name = name
        self.type_arguments = list(type_arguments or [])
        self.symbol = symbol

    def __repr__(self):
        return f"OpaqueType({self.text!r})"
