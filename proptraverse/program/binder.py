import enum
from collections import namedtuple

Declaration = namedtuple("Declaration", ["node", "source_file"])


class SymbolFlags(enum.IntFlag):
    NONE = 0
    VARIABLE = 1 << 0
    FUNCTION = 1 << 1
    CLASS = 1 << 2
    ENUM = 1 << 3
    INTERFACE = 1 << 4
    TYPE_ALIAS = 1 << 5
    NAMESPACE = 1 << 6
    MODULE = 1 << 7
    ALIAS = 1 << 8
    PROPERTY = 1 << 9
    METHOD = 1 << 10
    OPTIONAL = 1 << 11
    READONLY = 1 << 12
    TYPE_PARAMETER = 1 << 13

    TYPE = CLASS | ENUM | INTERFACE | TYPE_ALIAS | TYPE_PARAMETER
    VALUE = VARIABLE | FUNCTION | CLASS | ENUM | NAMESPACE | PROPERTY | METHOD
    NAMESPACE_MEANING = NAMESPACE | MODULE | ENUM


class AliasTarget:
    """Where an import/export alias points: a module export or a local name."""

    def __init__(self, name, module_specifier=None, container=None, source_file=None):
        self.name = name
        self.module_specifier = module_specifier
        self.container = container
        self.source_file = source_file


class Symbol:
    def __init__(self, name, flags=SymbolFlags.NONE):
        self.name = name
        self.flags = flags
        self.declarations = []
        self.locals = None
        self.exports = None
        self.star_exports = None
        self.export_equals = None
        self.alias_target = None
        self.parent = None

    def get_name(self):
        return self.name

    def add_declaration(self, flags, declaration):
        self.flags |= flags
        self.declarations.append(declaration)

    def __repr__(self):
        return f"Symbol({self.name!r}, {self.flags!r})"


def create_container(name, flags):
    container = Symbol(name, flags)
    container.locals = {}
    container.exports = {}
    container.star_exports = []
    return container


def merge_symbol_into(table, symbol):
    existing = table.get(symbol.name)
    if existing is None:
        merged = Symbol(symbol.name, symbol.flags)
        merged.declarations = list(symbol.declarations)
        merged.locals, merged.exports = symbol.locals, symbol.exports
        merged.star_exports, merged.alias_target = symbol.star_exports, symbol.alias_target
        table[symbol.name] = merged
        return merged
    existing.flags |= symbol.flags
    existing.declarations.extend(symbol.declarations)
    if symbol.exports:
        if existing.exports is None:
            existing.locals, existing.exports, existing.star_exports = {}, {}, []
        existing.locals.update(symbol.locals or {})
        existing.exports.update(symbol.exports)
    return existing


def _string_value(source_file, node):
    return source_file.get_text(node).strip()[1:-1]


class Binder:
    """Builds the module symbol (locals and exports) for one source file."""

    def __init__(self, source_file):
        self.source_file = source_file
        self.module = create_container(source_file.file_name, SymbolFlags.MODULE)
        self.module.declarations.append(Declaration(source_file.root_node, source_file))
        self.is_external_module = False
        self.global_declarations = create_container("globalThis", SymbolFlags.NAMESPACE)
        self.ambient_modules = {}
        self.namespace_scopes = {}
        self.module_specifiers = []

    def bind(self):
        root = self.source_file.root_node
        self.is_external_module = any(
            child.type in ("import_statement", "export_statement") for child in root.named_children
        )
        for child in root.named_children:
            self._bind_statement(child, self.module, exported=False, ambient=self.source_file.is_declaration_file)
        self.source_file.symbol = self.module
        return self

    def _declare(self, container, name, flags, node, exported):
        symbol = container.locals.get(name)
        if symbol is None:
            symbol = Symbol(name)
            symbol.parent = container
            container.locals[name] = symbol
        symbol.add_declaration(flags, Declaration(node, self.source_file))
        if exported:
            container.exports[name] = symbol
        return symbol

    def _declare_alias(self, table, name, target):
        symbol = Symbol(name, SymbolFlags.ALIAS)
        symbol.alias_target = target
        table[name] = symbol
        return symbol

    def _name_of(self, node):
        name_node = node.child_by_field_name("name")
        return self.source_file.get_text(name_node) if name_node is not None else None

    def _bind_statement(self, node, container, exported, ambient):
        t = node.type
        exported = exported or (ambient and container is not self.module)
        if t == "export_statement":
            self._bind_export(node, container, ambient)
        elif t == "import_statement":
            self._bind_import(node, container)
        elif t == "interface_declaration":
            self._declare(container, self._name_of(node), SymbolFlags.INTERFACE, node, exported)
        elif t == "type_alias_declaration":
            self._declare(container, self._name_of(node), SymbolFlags.TYPE_ALIAS, node, exported)
        elif t in ("lexical_declaration", "variable_declaration"):
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    self._declare(container, self.source_file.get_text(name_node), SymbolFlags.VARIABLE, declarator, exported)
        elif t in ("function_declaration", "function_signature", "generator_function_declaration"):
            name = self._name_of(node)
            if name:
                self._declare(container, name, SymbolFlags.FUNCTION, node, exported)
        elif t in ("class_declaration", "abstract_class_declaration"):
            name = self._name_of(node)
            if name:
                self._declare(container, name, SymbolFlags.CLASS, node, exported)
        elif t == "enum_declaration":
            self._declare(container, self._name_of(node), SymbolFlags.ENUM, node, exported)
        elif t == "ambient_declaration":
            self._bind_ambient(node, container, exported)
        elif t in ("internal_module", "module"):
            self._bind_namespace(node, container, exported, ambient)
        elif t == "expression_statement":
            for child in node.named_children:
                if child.type in ("internal_module", "module"):
                    self._bind_namespace(child, container, exported, ambient)

    def _bind_ambient(self, node, container, exported):
        if any(child.type == "global" for child in node.children):
            for child in node.named_children:
                if child.type == "statement_block":
                    for stmt in child.named_children:
                        self._bind_statement(stmt, self.global_declarations, exported=True, ambient=True)
            return
        for child in node.named_children:
            self._bind_statement(child, container, exported, ambient=True)

    def _bind_namespace(self, node, container, exported, ambient):
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None:
            return
        if name_node.type == "string":
            module = create_container(_string_value(self.source_file, name_node), SymbolFlags.MODULE)
            module.declarations.append(Declaration(node, self.source_file))
            if body is not None:
                self.namespace_scopes[node_key(body)] = module
                for stmt in body.named_children:
                    self._bind_statement(stmt, module, exported=False, ambient=True)
                has_exports = any(stmt.type == "export_statement" for stmt in body.named_children)
                if not has_exports:
                    module.exports.update(module.locals)
            self.ambient_modules.setdefault(module.name, []).append(module)
            return

        parts = self.source_file.get_text(name_node).split(".")
        target = container
        for i, part in enumerate(parts):
            symbol = target.locals.get(part)
            if symbol is None or symbol.exports is None:
                fresh = create_container(part, SymbolFlags.NAMESPACE)
                fresh.parent = target
                if symbol is not None:
                    fresh.flags |= symbol.flags
                    fresh.declarations = symbol.declarations
                symbol = fresh
                target.locals[part] = symbol
            symbol.flags |= SymbolFlags.NAMESPACE
            symbol.declarations.append(Declaration(node, self.source_file))
            if exported or i > 0 or part in target.exports:
                target.exports[part] = symbol
            target = symbol
        if body is not None:
            self.namespace_scopes[node_key(body)] = target
            for stmt in body.named_children:
                self._bind_statement(stmt, target, exported=False, ambient=ambient)

    def _bind_import(self, node, container):
        source = node.child_by_field_name("source")
        if source is None:
            return
        specifier = _string_value(self.source_file, source)
        self.module_specifiers.append(specifier)
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    name = self.source_file.get_text(part)
                    self._declare_alias(container.locals, name, AliasTarget("default", specifier, source_file=self.source_file))
                elif part.type == "namespace_import":
                    ident = next((c for c in part.named_children if c.type == "identifier"), None)
                    if ident is not None:
                        name = self.source_file.get_text(ident)
                        self._declare_alias(container.locals, name, AliasTarget("*", specifier, source_file=self.source_file))
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        name_node = spec.child_by_field_name("name")
                        alias_node = spec.child_by_field_name("alias") or name_node
                        imported = _specifier_name(self.source_file, name_node)
                        local = _specifier_name(self.source_file, alias_node)
                        self._declare_alias(container.locals, local, AliasTarget(imported, specifier, source_file=self.source_file))

    def _bind_export(self, node, container, ambient):
        declaration = node.child_by_field_name("declaration")
        source = node.child_by_field_name("source")
        specifier = _string_value(self.source_file, source) if source is not None else None
        if specifier is not None:
            self.module_specifiers.append(specifier)
        is_default = any(child.type == "default" for child in node.children)

        if declaration is not None:
            before = set(container.exports)
            self._bind_statement(declaration, container, exported=True, ambient=ambient)
            if is_default:
                added = [name for name in container.exports if name not in before]
                if added:
                    container.exports["default"] = container.exports.pop(added[0])
            return

        value = node.child_by_field_name("value")
        if is_default and value is not None:
            if value.type == "identifier":
                self._declare_alias(container.exports, "default", AliasTarget(self.source_file.get_text(value), container=container))
            return

        if any(child.type == "=" for child in node.children):
            expr = next((c for c in node.named_children if c.type in ("identifier", "nested_identifier", "member_expression")), None)
            if expr is not None:
                container.export_equals = self.source_file.get_text(expr)
            return

        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name_node = spec.child_by_field_name("name")
                alias_node = spec.child_by_field_name("alias") or name_node
                local = _specifier_name(self.source_file, name_node)
                exported_name = _specifier_name(self.source_file, alias_node)
                if specifier is not None:
                    target = AliasTarget(local, specifier, source_file=self.source_file)
                else:
                    target = AliasTarget(local, container=container)
                self._declare_alias(container.exports, exported_name, target)
            return

        namespace_export = next((c for c in node.named_children if c.type == "namespace_export"), None)
        if namespace_export is not None and specifier is not None:
            ident = namespace_export.named_children[-1]
            self._declare_alias(
                container.exports,
                _specifier_name(self.source_file, ident),
                AliasTarget("*", specifier, source_file=self.source_file),
            )
            return

        if specifier is not None and any(child.type == "*" for child in node.children):
            container.star_exports.append((specifier, self.source_file))


def _specifier_name(source_file, node):
    text = source_file.get_text(node)
    if node.type == "string":
        return text[1:-1]
    return text


def node_key(node):
    return (node.start_byte, node.end_byte, node.type)
