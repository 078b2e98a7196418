import copy

from proptraverse.checker.printer import TypePrinter
from proptraverse.checker.types import (
    INTRINSIC_FLAGS, ArrayType, IndexInfo, IntersectionType, IntrinsicType, LiteralType,
    ObjectType, OpaqueType, Signature, TupleType, TypeFlags, TypeParameter, UnionType,
)
from proptraverse.program.binder import Declaration, Symbol, SymbolFlags, node_key
from proptraverse.program.source_file import parse_jsdoc

FUNCTION_DECLARATIONS = ("function_declaration", "function_signature", "generator_function_declaration")
TYPE_NODE_KINDS = ("type_identifier", "nested_type_identifier", "generic_type")
BUILTIN_TYPE_NAMES = {
    "Array", "ReadonlyArray", "Partial", "Required", "Readonly", "Pick", "Omit",
    "Record", "NonNullable", "Exclude", "Extract",
}


class PropertySymbol(Symbol):
    """A member of an object type; its type is resolved on first use under `mapper`."""

    def __init__(self, name, flags, declaration=None, type_node=None, mapper=None, type=None):
        super().__init__(name, flags | SymbolFlags.PROPERTY)
        if declaration is not None:
            self.declarations.append(declaration)
        self.type_node = type_node
        self.mapper = mapper or {}
        self.type = type

    def clone(self, flags=None, type=None):
        prop = PropertySymbol(self.name, self.flags if flags is None else flags, None, self.type_node, self.mapper, type)
        prop.declarations = list(self.declarations)
        if type is None:
            prop.type = self.type
        return prop


def _flatten(node, kind):
    """Members of a left-recursive union/intersection node, in source order."""
    members = []
    for child in node.named_children:
        if child.type == kind:
            members.extend(_flatten(child, kind))
        elif child.type != "comment":
            members.append(child)
    return members


def _parse_number(text):
    cleaned = text.replace("_", "")
    try:
        return int(cleaned, 0)
    except ValueError:
        pass
    try:
        return float(cleaned)
    except ValueError:
        return None


def _unquote(text):
    body = text[1:-1]
    return body.replace("\\'", "'").replace('\\"', '"').replace("\\\\", "\\")


class TypeChecker:
    def __init__(self, program):
        self.program = program
        self._intrinsics = {name: IntrinsicType(name) for name in INTRINSIC_FLAGS if name != "unique symbol"}
        self.any_type = self._intrinsics["any"]
        self.unknown_type = self._intrinsics["unknown"]
        self.never_type = self._intrinsics["never"]
        self.unknown_symbol = Symbol("unknown")
        self._declared_types = {}
        self._declared_type_parameters = {}
        self._resolving_aliases = set()
        self._value_types = {}
        self._builtin_symbols = {}

    # ------------------------------------------------------------------ symbols

    def get_symbol_at_location(self, source_file):
        return source_file.symbol

    def get_exports_of_module(self, module_symbol):
        """Exported symbols keyed by their exported name (`default` included)."""
        return dict(self._module_exports(module_symbol))

    def _module_exports(self, module, seen=None):
        seen = set() if seen is None else seen
        if module is None or id(module) in seen:
            return {}
        seen.add(id(module))
        exports = {}
        if module.export_equals:
            target = self._export_equals_target(module)
            if target is not None and target.exports is not None:
                exports.update(self._module_exports(target, seen))
        exports.update(module.exports or {})
        for specifier, source_file in module.star_exports or []:
            target = self.program.get_module_symbol(specifier, source_file.file_name)
            for name, symbol in self._module_exports(target, seen).items():
                if name != "default":
                    exports.setdefault(name, symbol)
        return exports

    def _export_equals_target(self, module):
        if not module.export_equals:
            return None
        parts = module.export_equals.split(".")
        symbol = (module.locals or {}).get(parts[0])
        for part in parts[1:]:
            if symbol is None:
                return None
            symbol = self._module_exports(self.get_aliased_symbol(symbol)).get(part)
        return self.get_aliased_symbol(symbol) if symbol is not None else None

    def get_aliased_symbol(self, symbol):
        seen = set()
        while symbol.flags & SymbolFlags.ALIAS:
            if id(symbol) in seen:
                return self.unknown_symbol
            seen.add(id(symbol))
            target = symbol.alias_target
            if target.module_specifier is None:
                symbol = (target.container.locals or {}).get(target.name) or self.unknown_symbol
                continue
            module = self.program.get_module_symbol(target.module_specifier, target.source_file.file_name)
            if module is None:
                return self.unknown_symbol
            if target.name == "*":
                return module
            exports = self._module_exports(module)
            if target.name in exports:
                symbol = exports[target.name]
            elif target.name == "default" and module.export_equals:
                symbol = self._export_equals_target(module) or self.unknown_symbol
            else:
                return self.unknown_symbol
        return symbol

    def _lookup(self, table, name, meaning):
        symbol = table.get(name) if table else None
        if symbol is None:
            return None
        if symbol.flags & SymbolFlags.ALIAS:
            symbol = self.get_aliased_symbol(symbol)
        return symbol if symbol.flags & meaning else None

    def _resolve_name(self, name, location, source_file, meaning):
        scopes = self.program.namespace_scopes.get(source_file.file_name, {})
        node = location.parent if location is not None else None
        while node is not None:
            if node.type == "statement_block":
                container = scopes.get(node_key(node))
                if container is not None:
                    symbol = self._lookup(container.locals, name, meaning)
                    if symbol is not None:
                        return symbol
            node = node.parent
        symbol = self._lookup(source_file.symbol.locals, name, meaning)
        if symbol is not None:
            return symbol
        return self._lookup(self.program.globals.locals, name, meaning)

    def _resolve_entity(self, node, source_file, meaning):
        """Resolves dotted names such as `React.ReactNode` or `React.forwardRef`."""
        parts = [p.strip() for p in source_file.get_compact_text(node).split(".")]
        if len(parts) == 1:
            return self._resolve_name(parts[0], node, source_file, meaning)
        container_meaning = SymbolFlags.NAMESPACE_MEANING | SymbolFlags.VALUE
        symbol = self._resolve_name(parts[0], node, source_file, container_meaning)
        for part in parts[1:]:
            if symbol is None:
                return None
            exports = self._module_exports(symbol)
            next_symbol = exports.get(part)
            if next_symbol is None:
                return None
            symbol = self.get_aliased_symbol(next_symbol)
        return symbol if symbol.flags & meaning else None

    # ------------------------------------------------------------------ declared types

    def get_declared_type_of_symbol(self, symbol):
        if symbol.flags & SymbolFlags.ALIAS:
            symbol = self.get_aliased_symbol(symbol)
        args = self._declared_type_parameters.get(id(symbol))
        if args is None:
            _, param_nodes = self._type_parameter_nodes(symbol)
            args = [self._type_parameter(p, sf, {}) for p, sf in param_nodes]
            self._declared_type_parameters[id(symbol)] = args
        return self._declared_type_with_arguments(symbol, args)

    def _type_parameter_nodes(self, symbol):
        for decl in symbol.declarations:
            params = decl.node.child_by_field_name("type_parameters")
            if params is not None:
                nodes = [(p, decl.source_file) for p in params.named_children if p.type == "type_parameter"]
                return decl, nodes
        return None, []

    def _type_parameter(self, param, source_file, mapper):
        name = source_file.get_text(param.child_by_field_name("name"))
        constraint = param.child_by_field_name("constraint")
        constraint_type = None
        if constraint is not None and constraint.named_children:
            constraint_type = self._type_from_node(constraint.named_children[-1], source_file, mapper)
        return TypeParameter(name, constraint=constraint_type)

    def _build_mapper(self, param_nodes, source_file, args, base=None, keep_missing=False, inferred=None):
        mapper = dict(base or {})
        for i, param in enumerate(param_nodes):
            name = source_file.get_text(param.child_by_field_name("name"))
            if i < len(args):
                mapper[name] = args[i]
                continue
            if inferred and name in inferred:
                mapper[name] = inferred[name]
                continue
            default = param.child_by_field_name("value")
            if default is not None and default.named_children:
                mapper[name] = self._type_from_node(default.named_children[-1], source_file, mapper)
            elif keep_missing:
                mapper[name] = self._type_parameter(param, source_file, mapper)
            else:
                mapper[name] = self.unknown_type
        return mapper

    def _declared_type_with_arguments(self, symbol, args):
        if symbol.flags & SymbolFlags.INTERFACE:
            return self._instantiate_interface(symbol, args)
        if symbol.flags & SymbolFlags.TYPE_ALIAS:
            return self._instantiate_alias(symbol, args)
        if symbol.flags & (SymbolFlags.CLASS | SymbolFlags.ENUM):
            return OpaqueType(symbol.name, name=symbol.name, type_arguments=args, symbol=symbol)
        return self.unknown_type

    def _types_key(self, types):
        return tuple(self._type_key(t) for t in types)

    def _type_key(self, t):
        if t.alias_symbol is None:
            if isinstance(t, IntrinsicType):
                return ("i", t.name)
            if isinstance(t, LiteralType):
                return ("l", type(t.value).__name__, t.value)
            if isinstance(t, OpaqueType):
                return ("o", t.text, t.name, self._types_key(t.type_arguments))
            if isinstance(t, ArrayType):
                return ("a", t.readonly, self._type_key(t.element_type))
        return ("#", id(t))

    def _instantiate_interface(self, symbol, args):
        key = (id(symbol), self._types_key(args))
        cached = self._declared_types.get(key)
        if cached is not None:
            return cached
        obj = ObjectType(symbol=symbol, type_arguments=args)
        obj.resolver = lambda: self._interface_members(symbol, args)
        self._declared_types[key] = obj
        return obj

    def _interface_members(self, symbol, args):
        props, calls, indexes, bases = {}, [], [], []
        for decl in symbol.declarations:
            if decl.node.type != "interface_declaration":
                continue
            sf = decl.source_file
            params = decl.node.child_by_field_name("type_parameters")
            param_nodes = [p for p in params.named_children if p.type == "type_parameter"] if params else []
            mapper = self._build_mapper(param_nodes, sf, args)
            body = decl.node.child_by_field_name("body")
            if body is not None:
                self._collect_members(body, sf, mapper, props, calls, indexes)
            for clause in decl.node.named_children:
                if clause.type != "extends_type_clause":
                    continue
                for base_node in clause.named_children:
                    if base_node.type in TYPE_NODE_KINDS:
                        bases.append(self._type_from_node(base_node, sf, mapper))
        for base in bases:
            for prop in self.get_properties_of_type(base):
                props.setdefault(prop.name, prop)
            if not calls:
                calls = list(self.get_call_signatures(base))
            if not indexes:
                indexes = list(self._index_infos(base))
        return props, calls, indexes

    def _instantiate_alias(self, symbol, args):
        key = (id(symbol), self._types_key(args))
        cached = self._declared_types.get(key)
        if cached is not None:
            return cached
        decl = next((d for d in symbol.declarations if d.node.type == "type_alias_declaration"), None)
        if decl is None or key in self._resolving_aliases:
            return OpaqueType(symbol.name, name=symbol.name, type_arguments=args, symbol=symbol)

        self._resolving_aliases.add(key)
        try:
            params = decl.node.child_by_field_name("type_parameters")
            param_nodes = [p for p in params.named_children if p.type == "type_parameter"] if params else []
            mapper = self._build_mapper(param_nodes, decl.source_file, args)
            value = decl.node.child_by_field_name("value")
            resolved = self._type_from_node(value, decl.source_file, mapper) if value is not None else self.unknown_type
        finally:
            self._resolving_aliases.discard(key)

        result = self._with_alias(resolved, symbol, args)
        self._declared_types[key] = result
        return result

    def _with_alias(self, t, symbol, args):
        aliasable = isinstance(t, (UnionType, IntersectionType)) or (
            isinstance(t, ObjectType) and t.symbol is None and not isinstance(t, (ArrayType, TupleType))
        ) or (isinstance(t, OpaqueType) and t.name is None)
        if not aliasable or t.alias_symbol is not None:
            return t
        aliased = copy.copy(t)
        aliased.alias_symbol = symbol
        aliased.alias_type_arguments = list(args) or None
        return aliased

    # ------------------------------------------------------------------ type nodes

    def get_type_from_type_node(self, node, source_file, mapper=None):
        return self._type_from_node(node, source_file, mapper or {})

    def _type_from_node(self, node, sf, mapper):
        t = node.type
        if t == "parenthesized_type":
            inner = [c for c in node.named_children if c.type != "comment"]
            return self._type_from_node(inner[0], sf, mapper) if inner else self.unknown_type
        if t == "predefined_type":
            return self._intrinsics.get(" ".join(sf.get_text(node).split()), self._intrinsics["symbol"])
        if t == "literal_type":
            return self._literal_from_node(node.named_children[0], sf) if node.named_children else self.unknown_type
        if t in ("type_identifier", "nested_type_identifier"):
            return self._type_reference(node, None, sf, mapper)
        if t == "generic_type":
            return self._type_reference(node.child_by_field_name("name"), node.child_by_field_name("type_arguments"), sf, mapper)
        if t == "union_type":
            return self.get_union_type([self._type_from_node(m, sf, mapper) for m in _flatten(node, "union_type")])
        if t == "intersection_type":
            return self.get_intersection_type([self._type_from_node(m, sf, mapper) for m in _flatten(node, "intersection_type")])
        if t == "array_type":
            return ArrayType(self._type_from_node(node.named_children[0], sf, mapper))
        if t == "readonly_type":
            inner = self._type_from_node(node.named_children[0], sf, mapper)
            if isinstance(inner, ArrayType):
                return ArrayType(inner.element_type, readonly=True)
            if isinstance(inner, TupleType):
                return TupleType(inner.element_types, inner.labels, readonly=True)
            return inner
        if t == "tuple_type":
            return self._tuple_from_node(node, sf, mapper)
        if t == "function_type":
            return self._callable([self._signature_from_node(node, sf, mapper)])
        if t == "object_type":
            obj = ObjectType()
            obj.resolver = lambda: self._object_literal_members(node, sf, mapper)
            return obj
        if t == "index_type_query":
            return self._keyof(self._type_from_node(node.named_children[-1], sf, mapper), sf.get_compact_text(node))
        if t == "lookup_type":
            children = node.named_children
            return self._indexed_access(
                self._type_from_node(children[0], sf, mapper),
                self._type_from_node(children[1], sf, mapper),
                sf.get_compact_text(node),
            )
        if t == "type_query":
            operand = next((c for c in node.named_children if c.type in ("identifier", "member_expression", "nested_identifier")), None)
            if operand is not None:
                symbol = self._resolve_entity(operand, sf, SymbolFlags.VALUE)
                if symbol is not None:
                    return self.get_type_of_symbol(symbol)
        return OpaqueType(sf.get_compact_text(node))

    def _literal_from_node(self, node, sf):
        text = sf.get_text(node)
        if node.type == "string":
            return LiteralType(_unquote(text))
        if node.type == "number":
            value = _parse_number(text)
            return LiteralType(value) if value is not None else OpaqueType(text)
        if node.type == "true":
            return LiteralType(True)
        if node.type == "false":
            return LiteralType(False)
        if node.type in ("null", "undefined"):
            return self._intrinsics[node.type]
        if text in ("null", "undefined"):
            return self._intrinsics[text]
        return OpaqueType(text)

    def _type_reference(self, name_node, args_node, sf, mapper):
        name = sf.get_compact_text(name_node).replace(" ", "")
        arg_nodes = [a for a in args_node.named_children if a.type != "comment"] if args_node is not None else []
        args = [self._type_from_node(a, sf, mapper) for a in arg_nodes]
        simple_name = name.split(".")[-1]

        if name_node.type == "type_identifier":
            if name in mapper and not args:
                return mapper[name]
            if name in self._intrinsics and name in ("undefined", "null", "bigint"):
                return self._intrinsics[name]
            symbol = self._resolve_name(name, name_node, sf, SymbolFlags.TYPE)
            if symbol is None:
                builtin = self._builtin_reference(name, args)
                if builtin is not None:
                    return builtin
        else:
            symbol = self._resolve_entity(name_node, sf, SymbolFlags.TYPE)

        if symbol is None:
            return OpaqueType(simple_name, name=simple_name, type_arguments=args)
        return self._declared_type_with_arguments(symbol, args)

    def _tuple_from_node(self, node, sf, mapper):
        elements, labels = [], []
        for child in node.named_children:
            if child.type == "comment":
                continue
            optional = rest = False
            label = None
            type_node = child
            if child.type == "optional_type":
                optional, type_node = True, child.named_children[0]
            elif child.type == "rest_type":
                rest, type_node = True, child.named_children[0]
            elif child.child_by_field_name("type") is not None and child.type not in TYPE_NODE_KINDS:
                name_node = child.child_by_field_name("name") or child.child_by_field_name("pattern")
                label = sf.get_text(name_node).lstrip(".") if name_node is not None else None
                optional = child.type.startswith("optional")
                rest = sf.get_text(child).lstrip().startswith("...")
                annotation = child.child_by_field_name("type")
                type_node = annotation.named_children[0] if annotation.type == "type_annotation" else annotation
            elements.append((self._type_from_node(type_node, sf, mapper), optional, rest))
            labels.append(label)
        return TupleType(elements, labels)

    def _callable(self, signatures):
        obj = ObjectType()
        obj.members = {}
        obj.call_signatures = signatures
        return obj

    def _signature_from_node(self, node, sf, mapper, type_arguments=None, inferred=None):
        mapper = dict(mapper)
        type_parameters = []
        params_node = node.child_by_field_name("type_parameters")
        if params_node is not None:
            param_nodes = [p for p in params_node.named_children if p.type == "type_parameter"]
            if type_arguments is not None:
                mapper = self._build_mapper(
                    param_nodes, sf, type_arguments, base=mapper, keep_missing=True, inferred=inferred
                )
            else:
                for p in param_nodes:
                    tp = self._type_parameter(p, sf, mapper)
                    mapper[tp.name] = tp
                    type_parameters.append(tp)

        parameters = []
        formal = node.child_by_field_name("parameters")
        for param in formal.named_children if formal is not None else []:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = param.child_by_field_name("pattern")
            rest = pattern is not None and pattern.type == "rest_pattern"
            name = sf.get_compact_text(pattern).lstrip(".") if pattern is not None else "arg"
            annotation = param.child_by_field_name("type")
            if annotation is not None and annotation.named_children:
                ptype = self._type_from_node(annotation.named_children[0], sf, mapper)
            else:
                ptype = self.any_type
            optional = param.type == "optional_parameter" or param.child_by_field_name("value") is not None
            parameters.append((name, ptype, optional, rest))

        return_node = node.child_by_field_name("return_type")
        if return_node is not None and return_node.type == "type_annotation":
            return_node = return_node.named_children[0] if return_node.named_children else None
        if return_node is None:
            return_type = self.any_type
        elif return_node.type in ("type_predicate", "type_predicate_annotation"):
            return_type = self._intrinsics["boolean"]
        elif return_node.type == "asserts" or return_node.type == "asserts_annotation":
            return_type = self._intrinsics["void"]
        else:
            return_type = self._type_from_node(return_node, sf, mapper)
        return Signature(parameters, return_type, type_parameters)

    def _property_name(self, member, sf):
        name_node = member.child_by_field_name("name")
        if name_node is None or name_node.type == "computed_property_name":
            return None
        text = sf.get_text(name_node)
        if name_node.type == "string":
            return _unquote(text)
        return text

    def _collect_members(self, body, sf, mapper, props, calls, indexes):
        for member in body.named_children:
            kind = member.type
            if kind in ("property_signature", "method_signature"):
                name = self._property_name(member, sf)
                if name is None or name in props:
                    continue
                flags = SymbolFlags.PROPERTY
                child_types = {c.type for c in member.children}
                if "?" in child_types:
                    flags |= SymbolFlags.OPTIONAL
                if "readonly" in child_types:
                    flags |= SymbolFlags.READONLY
                type_node = None
                if kind == "method_signature":
                    flags |= SymbolFlags.METHOD
                else:
                    annotation = member.child_by_field_name("type")
                    if annotation is not None and annotation.named_children:
                        type_node = annotation.named_children[0]
                props[name] = PropertySymbol(name, flags, Declaration(member, sf), type_node, mapper)
            elif kind == "call_signature":
                calls.append(self._signature_from_node(member, sf, mapper))
            elif kind == "index_signature":
                clause = next((c for c in member.named_children if c.type == "mapped_type_clause"), None)
                if clause is not None:
                    self._collect_mapped_members(member, clause, sf, mapper, props, indexes)
                    continue
                name_node = member.child_by_field_name("name")
                key_node = member.child_by_field_name("index_type")
                value_type = self._annotation_type(member, sf, mapper)
                key_type = self._type_from_node(key_node, sf, mapper) if key_node is not None else self._intrinsics["string"]
                readonly = any(c.type == "readonly" for c in member.children)
                indexes.append(IndexInfo(sf.get_text(name_node) if name_node else "key", key_type, value_type, readonly))

    def _annotation_type(self, member, sf, mapper, extra=None):
        annotation = member.child_by_field_name("type")
        if annotation is None:
            return self.any_type
        type_node = annotation.named_children[-1] if annotation.named_children else None
        if type_node is None:
            return self.any_type
        return self._type_from_node(type_node, sf, dict(mapper, **(extra or {})))

    def _collect_mapped_members(self, member, clause, sf, mapper, props, indexes):
        param_name = sf.get_text(clause.child_by_field_name("name"))
        keys_node = clause.child_by_field_name("type")
        keys_type = self._type_from_node(keys_node, sf, mapper)
        annotation = member.child_by_field_name("type")
        modifier = annotation.type if annotation is not None else ""
        source_props = {}
        if keys_node.type == "index_type_query":
            source = self._type_from_node(keys_node.named_children[-1], sf, mapper)
            source_props = {p.name: p for p in self.get_properties_of_type(source)}

        keys = self._literal_keys(keys_type)
        if keys is None:
            value_type = self._annotation_type(member, sf, mapper, {param_name: keys_type})
            indexes.append(IndexInfo(param_name, keys_type, value_type))
            return
        for key in keys:
            name = str(key) if not isinstance(key, bool) else ("true" if key else "false")
            source = source_props.get(name)
            flags = source.flags & (SymbolFlags.OPTIONAL | SymbolFlags.READONLY) if source is not None else SymbolFlags.NONE
            if modifier in ("opting_type_annotation", "adding_type_annotation"):
                flags |= SymbolFlags.OPTIONAL
            elif modifier == "omitting_type_annotation":
                flags &= ~SymbolFlags.OPTIONAL
            value_type = self._annotation_type(member, sf, mapper, {param_name: LiteralType(key)})
            prop = PropertySymbol(name, flags, type=value_type)
            if source is not None:
                prop.declarations = list(source.declarations)
            props.setdefault(name, prop)

    def _object_literal_members(self, node, sf, mapper):
        props, calls, indexes = {}, [], []
        self._collect_members(node, sf, mapper, props, calls, indexes)
        return props, calls, indexes

    def _keyof(self, operand, text):
        props = self.get_properties_of_type(operand)
        if props:
            return self.get_union_type([LiteralType(p.name) for p in props])
        if isinstance(operand, ObjectType) and not isinstance(operand, (ArrayType, TupleType)):
            infos = self._index_infos(operand)
            if infos:
                return self.get_union_type([info.key_type for info in infos])
            return self.never_type
        return OpaqueType(text)

    def _indexed_access(self, object_type, index_type, text):
        keys = self._literal_keys(index_type)
        if keys is not None:
            props = {p.name: p for p in self.get_properties_of_type(object_type)}
            types = []
            for key in keys:
                prop = props.get(str(key))
                if prop is None:
                    return OpaqueType(text)
                types.append(self.get_type_of_symbol(prop))
            return self.get_union_type(types)
        if isinstance(object_type, ArrayType) and index_type.flags & TypeFlags.NUMBER:
            return object_type.element_type
        if isinstance(object_type, TupleType) and index_type.flags & TypeFlags.NUMBER:
            return self.get_union_type([t for t, _, _ in object_type.element_types])
        return OpaqueType(text)

    def _literal_keys(self, t):
        members = t.types if isinstance(t, UnionType) else [t]
        if all(isinstance(m, LiteralType) for m in members):
            return [m.value for m in members]
        return None

    # ------------------------------------------------------------------ built-in utility types

    def _builtin_symbol(self, name):
        if name not in self._builtin_symbols:
            self._builtin_symbols[name] = Symbol(name, SymbolFlags.TYPE_ALIAS)
        return self._builtin_symbols[name]

    def _builtin_reference(self, name, args):
        if name not in BUILTIN_TYPE_NAMES:
            return None
        first = args[0] if args else self.unknown_type
        second = args[1] if len(args) > 1 else self.unknown_type
        if name in ("Array", "ReadonlyArray"):
            return ArrayType(first, readonly=name == "ReadonlyArray")
        if name == "NonNullable":
            return self.get_non_nullable_type(first)
        if name in ("Exclude", "Extract"):
            members = first.types if isinstance(first, UnionType) else [first]
            targets = second.types if isinstance(second, UnionType) else [second]
            keep = name == "Extract"
            return self.get_union_type(
                [m for m in members if any(self._is_simply_assignable(m, t) for t in targets) == keep]
            )

        result = None
        if name == "Partial":
            result = self._map_properties(first, lambda p: p.clone(flags=p.flags | SymbolFlags.OPTIONAL))
        elif name == "Required":
            result = self._map_properties(first, lambda p: p.clone(flags=p.flags & ~SymbolFlags.OPTIONAL))
        elif name == "Readonly":
            result = self._map_properties(first, lambda p: p.clone(flags=p.flags | SymbolFlags.READONLY))
        elif name in ("Pick", "Omit"):
            keys = self._literal_keys(second)
            if keys is not None:
                names = {str(k) for k in keys}
                picking = name == "Pick"
                result = self._map_properties(first, lambda p: p, keep=lambda n: (n in names) == picking)
        elif name == "Record":
            result = self._record(first, second)

        if result is None:
            return OpaqueType(name, name=name, type_arguments=args)
        return self._with_alias(result, self._builtin_symbol(name), args)

    def _is_simply_assignable(self, source, target):
        if target.flags & (TypeFlags.ANY | TypeFlags.UNKNOWN):
            return True
        if self._type_key(source) == self._type_key(target):
            return True
        if isinstance(source, LiteralType):
            widened = {
                TypeFlags.STRING_LITERAL: TypeFlags.STRING,
                TypeFlags.NUMBER_LITERAL: TypeFlags.NUMBER,
                TypeFlags.BOOLEAN_LITERAL: TypeFlags.BOOLEAN,
            }[source.flags]
            return bool(target.flags & widened)
        return False

    def _map_properties(self, source, transform, keep=None):
        if isinstance(source, UnionType):
            mapped = [self._map_properties(m, transform, keep) for m in source.types]
            if any(m is None for m in mapped):
                return None
            return self.get_union_type(mapped)
        if not isinstance(source, (ObjectType, IntersectionType)) or isinstance(source, (ArrayType, TupleType)):
            return None

        def resolver():
            members = {}
            for prop in self.get_properties_of_type(source):
                if keep is None or keep(prop.name):
                    members[prop.name] = transform(prop)
            indexes = list(self._index_infos(source)) if keep is None else []
            return members, [], indexes

        obj = ObjectType()
        obj.resolver = resolver
        return obj

    def _record(self, keys_type, value_type):
        keys = self._literal_keys(keys_type)
        obj = ObjectType()
        if keys is None:
            obj.resolver = lambda: ({}, [], [IndexInfo("key", keys_type, value_type)])
        else:
            obj.resolver = lambda: (
                {str(k): PropertySymbol(str(k), SymbolFlags.PROPERTY, type=value_type) for k in keys}, [], []
            )
        return obj

    # ------------------------------------------------------------------ unions and intersections

    def get_union_type(self, types):
        flat = []
        for t in types:
            flat.extend(t.types if isinstance(t, UnionType) else [t])
        result, seen = [], set()
        for t in flat:
            if t.flags & TypeFlags.ANY:
                return self.any_type
            if t.flags & TypeFlags.NEVER:
                continue
            key = self._type_key(t)
            if key in seen:
                continue
            seen.add(key)
            result.append(t)
        if not result:
            return self.never_type
        if len(result) == 1:
            return result[0]
        return UnionType(result)

    def get_intersection_type(self, types):
        flat = []
        for t in types:
            flat.extend(t.types if isinstance(t, IntersectionType) else [t])
        result, seen = [], set()
        for t in flat:
            if t.flags & TypeFlags.NEVER:
                return self.never_type
            if t.flags & TypeFlags.ANY:
                return self.any_type
            if t.flags & TypeFlags.UNKNOWN:
                continue
            key = self._type_key(t)
            if key in seen:
                continue
            seen.add(key)
            result.append(t)
        if not result:
            return self.unknown_type
        if len(result) == 1:
            return result[0]
        return IntersectionType(result)

    def get_non_nullable_type(self, t):
        if isinstance(t, UnionType):
            kept = [m for m in t.types if not m.flags & TypeFlags.NULLABLE]
            if len(kept) == len(t.types):
                return t
            return self.get_union_type(kept)
        if t.flags & TypeFlags.NULLABLE:
            return self.never_type
        return t

    # ------------------------------------------------------------------ structure queries

    def get_properties_of_type(self, t):
        if isinstance(t, TypeParameter):
            return self.get_properties_of_type(t.constraint) if t.constraint is not None else []
        if isinstance(t, (ArrayType, TupleType)):
            return []
        if isinstance(t, ObjectType):
            return list(t.resolve_members().values())
        if isinstance(t, IntersectionType):
            return self._intersection_properties(t)
        if isinstance(t, UnionType):
            member_props = [{p.name: p for p in self.get_properties_of_type(m)} for m in t.types]
            common = []
            for name, prop in member_props[0].items():
                if all(name in props for props in member_props[1:]):
                    types = [self.get_type_of_symbol(props[name]) for props in member_props]
                    common.append(prop.clone(type=self.get_union_type(types)))
            return common
        return []

    def _intersection_properties(self, t):
        if t.resolved_properties is None:
            merged = {}
            for member in t.types:
                for prop in self.get_properties_of_type(member):
                    existing = merged.get(prop.name)
                    if existing is None:
                        merged[prop.name] = prop
                        continue
                    flags = existing.flags
                    if not prop.flags & SymbolFlags.OPTIONAL:
                        flags &= ~SymbolFlags.OPTIONAL
                    combined = self.get_intersection_type(
                        [self.get_type_of_symbol(existing), self.get_type_of_symbol(prop)]
                    )
                    merged[prop.name] = existing.clone(flags=flags, type=combined)
            t.resolved_properties = merged
        return list(t.resolved_properties.values())

    def _index_infos(self, t):
        if isinstance(t, ObjectType):
            t.resolve_members()
            return t.index_infos
        if isinstance(t, IntersectionType):
            infos = []
            for member in t.types:
                infos.extend(self._index_infos(member))
            return infos
        return []

    def get_call_signatures(self, t):
        if isinstance(t, ObjectType):
            t.resolve_members()
            return t.call_signatures
        if isinstance(t, IntersectionType):
            for member in t.types:
                signatures = self.get_call_signatures(member)
                if signatures:
                    return signatures
        return []

    def get_type_arguments(self, t):
        if isinstance(t, (ObjectType, OpaqueType)):
            return list(t.type_arguments)
        return []

    def is_array_type(self, t):
        return isinstance(t, ArrayType)

    def is_tuple_type(self, t):
        return isinstance(t, TupleType)

    # ------------------------------------------------------------------ value types

    def get_type_of_symbol_at_location(self, symbol, source_file):
        return self.get_type_of_symbol(symbol)

    def get_type_of_symbol(self, symbol):
        if isinstance(symbol, PropertySymbol):
            if symbol.type is None:
                symbol.type = self.any_type
                symbol.type = self._property_type(symbol)
            return symbol.type
        if symbol.flags & SymbolFlags.ALIAS:
            symbol = self.get_aliased_symbol(symbol)
        if symbol.flags & (SymbolFlags.VARIABLE | SymbolFlags.FUNCTION):
            cached = self._value_types.get(id(symbol))
            if cached is None:
                self._value_types[id(symbol)] = self.any_type
                cached = self._value_symbol_type(symbol)
                self._value_types[id(symbol)] = cached
            return cached
        if symbol.flags & (SymbolFlags.NAMESPACE | SymbolFlags.MODULE | SymbolFlags.CLASS | SymbolFlags.ENUM):
            return OpaqueType(f"typeof {symbol.name}", symbol=symbol)
        return self.unknown_type

    def _property_type(self, prop):
        if not prop.declarations:
            return self.any_type
        decl = prop.declarations[0]
        if prop.flags & SymbolFlags.METHOD and decl.node.type == "method_signature":
            return self._callable([self._signature_from_node(decl.node, decl.source_file, prop.mapper)])
        if prop.type_node is not None:
            return self._type_from_node(prop.type_node, decl.source_file, prop.mapper)
        return self.any_type

    def _value_symbol_type(self, symbol):
        signatures = []
        for decl in symbol.declarations:
            node, sf = decl
            if node.type in FUNCTION_DECLARATIONS:
                signatures.append(self._signature_from_node(node, sf, {}))
            elif node.type == "variable_declarator":
                annotation = node.child_by_field_name("type")
                if annotation is not None and annotation.named_children:
                    return self._type_from_node(annotation.named_children[0], sf, {})
                value = node.child_by_field_name("value")
                if value is not None:
                    return self._type_of_expression(value, sf)
        if signatures:
            return self._callable(signatures)
        return self.unknown_type

    def _type_of_expression(self, node, sf):
        t = node.type
        named = [c for c in node.named_children if c.type != "comment"]
        if t == "parenthesized_expression" and named:
            return self._type_of_expression(named[0], sf)
        if t == "as_expression" and named:
            if len(named) == 1:
                return self._type_of_expression(named[0], sf)
            return self._type_from_node(named[-1], sf, {})
        if t in ("satisfies_expression", "non_null_expression") and named:
            return self._type_of_expression(named[0], sf)
        if t in ("arrow_function", "function_expression", "function"):
            return self._callable([self._signature_from_node(node, sf, {})])
        if t == "call_expression":
            return self._type_of_call(node, sf)
        if t in ("identifier", "member_expression"):
            symbol = self._resolve_entity(node, sf, SymbolFlags.VALUE)
            return self.get_type_of_symbol(symbol) if symbol is not None else self.unknown_type
        if t == "string":
            return LiteralType(_unquote(sf.get_text(node)))
        if t == "number":
            value = _parse_number(sf.get_text(node))
            return LiteralType(value) if value is not None else self._intrinsics["number"]
        if t in ("true", "false"):
            return LiteralType(t == "true")
        return self.unknown_type

    def _type_of_call(self, node, sf):
        callee = node.child_by_field_name("function")
        if callee is None or callee.type not in ("identifier", "member_expression"):
            return self.unknown_type
        symbol = self._resolve_entity(callee, sf, SymbolFlags.VALUE)
        if symbol is None:
            return self.unknown_type
        args_node = node.child_by_field_name("type_arguments")
        type_args = [self._type_from_node(a, sf, {}) for a in args_node.named_children if a.type != "comment"] if args_node else []

        declarations = [d for d in symbol.declarations if d.node.type in FUNCTION_DECLARATIONS]
        if declarations:
            chosen = declarations[0]
            for decl in declarations:
                params = decl.node.child_by_field_name("type_parameters")
                count = len([p for p in params.named_children if p.type == "type_parameter"]) if params else 0
                if count >= len(type_args):
                    chosen = decl
                    break
            inferred = self._infer_call_type_arguments(chosen, node, sf, len(type_args))
            signature = self._signature_from_node(
                chosen.node, chosen.source_file, {}, type_arguments=type_args, inferred=inferred
            )
            return signature.return_type

        signatures = self.get_call_signatures(self.get_type_of_symbol(symbol))
        return signatures[0].return_type if signatures else self.unknown_type

    def _infer_call_type_arguments(self, decl, call_node, sf, explicit_count):
        """Infers the type parameters left without explicit arguments from the call's arguments."""
        generic = self._signature_from_node(decl.node, decl.source_file, {})
        names = {tp.name for tp in generic.type_parameters[explicit_count:]}
        if not names:
            return {}
        args_node = call_node.child_by_field_name("arguments")
        arguments = [a for a in args_node.named_children if a.type != "comment"] if args_node is not None else []
        inferences = {}
        for (_, param_type, _, rest), argument in zip(generic.parameters, arguments):
            if rest:
                break
            self._infer_from_types(self._type_of_expression(argument, sf), param_type, names, inferences)
        return inferences

    def _infer_from_types(self, source, target, names, inferences, depth=0):
        if depth > 8 or source.flags & TypeFlags.ANY:
            return
        depth += 1
        if isinstance(target, TypeParameter):
            if target.name in names and target.name not in inferences and not isinstance(source, TypeParameter):
                inferences[target.name] = source
            return
        if target.alias_symbol is not None and source.alias_symbol is target.alias_symbol:
            for s, t in zip(source.alias_type_arguments or [], target.alias_type_arguments or []):
                self._infer_from_types(s, t, names, inferences, depth)
            return
        if isinstance(target, UnionType):
            # only `T | null`-like targets have an unambiguous constituent
            candidates = [m for m in target.types if not m.flags & TypeFlags.NULLABLE]
            if len(candidates) == 1:
                self._infer_from_types(self.get_non_nullable_type(source), candidates[0], names, inferences, depth)
            return
        if isinstance(target, ArrayType):
            if isinstance(source, ArrayType):
                self._infer_from_types(source.element_type, target.element_type, names, inferences, depth)
            return
        if not isinstance(target, ObjectType) or not isinstance(source, ObjectType):
            return
        if target.symbol is not None and target.symbol is source.symbol:
            for s, t in zip(source.type_arguments, target.type_arguments):
                self._infer_from_types(s, t, names, inferences, depth)
            return
        target_signatures = self.get_call_signatures(target)
        source_signatures = self.get_call_signatures(source)
        if target_signatures and source_signatures:
            target_sig, source_sig = target_signatures[0], source_signatures[0]
            for (_, s, _, _), (_, t, _, _) in zip(source_sig.parameters, target_sig.parameters):
                self._infer_from_types(s, t, names, inferences, depth)
            self._infer_from_types(source_sig.return_type, target_sig.return_type, names, inferences, depth)

    # ------------------------------------------------------------------ documentation and text

    def get_documentation_comment(self, symbol) -> str:
        for decl in symbol.declarations:
            comment = decl.source_file.get_jsdoc(decl.node)
            if comment:
                description, _ = parse_jsdoc(comment)
                if description:
                    return description
        return ""

    def get_jsdoc_tags(self, symbol):
        tags = []
        for decl in symbol.declarations:
            comment = decl.source_file.get_jsdoc(decl.node)
            if comment:
                tags.extend(parse_jsdoc(comment)[1])
        return tags

    def type_to_string(self, t, multiline=False, in_type_alias=False, expand_top=False) -> str:
        return TypePrinter(self, multiline=multiline, in_type_alias=in_type_alias, expand_top=expand_top).print_type(t)
