import re
from collections import namedtuple

from proptraverse.checker.types import TypeFlags
from proptraverse.extractors.ref_extractor import RefExtractor
from proptraverse.extractors.type_text import (
    flatten_members, is_nullish, is_reference, literal_child, reference_name, type_arguments,
    type_node_to_string,
)
from proptraverse.program.binder import SymbolFlags
from proptraverse.program.program import create_program

PROPS_SUFFIX = "Props"
CONDITIONAL_WRAPPER = "ConditionalValue"

PRESERVE_TYPE_NAMES = {
    "ReactNode",
    "ReactElement",
    "CSSProperties",
    "Ref",
    "RefObject",
    "MutableRefObject",
    "HTMLAttributes",
    "AriaAttributes",
}

IGNORED_PROPS = {"key", "ref", "__css", "css"}

PRIMITIVE_KEYWORDS = {
    "string", "number", "boolean", "bigint", "symbol", "void", "undefined", "null", "never", "any", "unknown",
}

PRIMITIVE_FLAGS = (
    TypeFlags.STRING | TypeFlags.NUMBER | TypeFlags.BOOLEAN | TypeFlags.BIGINT | TypeFlags.ES_SYMBOL
    | TypeFlags.VOID | TypeFlags.UNDEFINED | TypeFlags.NULL | TypeFlags.NEVER | TypeFlags.ANY | TypeFlags.UNKNOWN
)

_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

DiscoveredComponent = namedtuple("DiscoveredComponent", ["name", "props_type_name", "source_file", "symbol"])


def parse_default_value(value: str):
    cleaned = value.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ("'", '"'):
        return cleaned[1:-1]
    if cleaned in ("true", "false"):
        return cleaned == "true"
    if cleaned == "null":
        return None
    if _NUMBER.match(cleaned):
        number = float(cleaned)
        return int(number) if number.is_integer() and not re.search(r"[.eE]", cleaned) else number
    return cleaned


def _type_info(kind, text, **extra):
    info = {"kind": kind, "type": text}
    info.update(extra)
    return info


class PropsGenerator:
    """Discovers `*Props` declarations and classifies each of their properties."""

    def __init__(self, program):
        self.program = program
        self.checker = program.get_type_checker()
        self.ref_extractor = RefExtractor(self.checker)

    @classmethod
    def from_config(cls, root_dir: str, tsconfig_path: str, component_files=()):
        return cls(create_program(root_dir, tsconfig_path, component_files))

    def get_source_files(self):
        return self.program.get_source_files()

    def discover_exported_props_types(self, source_file):
        results = []
        module = self.checker.get_symbol_at_location(source_file)
        if module is None:
            return results

        seen = set()
        for name, exported in self.checker.get_exports_of_module(module).items():
            if not name.endswith(PROPS_SUFFIX):
                continue
            symbol = exported
            if symbol.flags & SymbolFlags.ALIAS:
                symbol = self.checker.get_aliased_symbol(symbol)
            if not symbol.declarations:
                continue
            if not symbol.flags & (SymbolFlags.TYPE_ALIAS | SymbolFlags.INTERFACE):
                continue
            if id(symbol) in seen:
                continue
            seen.add(id(symbol))
            results.append(DiscoveredComponent(name[: -len(PROPS_SUFFIX)], name, source_file, symbol))
        return results

    def resolve_props_type(self, symbol, source_file):
        properties = []
        declared = self.checker.get_declared_type_of_symbol(symbol)
        for prop in self.checker.get_properties_of_type(declared):
            name = prop.get_name()
            if name in IGNORED_PROPS:
                continue
            type_info, conditional = self.get_type_info(prop, source_file)
            description, default_value = self.extract_jsdoc(prop)
            properties.append({
                "name": name,
                "typeInfo": type_info,
                "conditional": conditional,
                "required": not prop.flags & SymbolFlags.OPTIONAL,
                "readonly": self.is_readonly(prop),
                "description": description,
                "defaultValue": default_value,
                "sourceFile": prop.declarations[0].source_file.file_name if prop.declarations else None,
            })
        return properties

    def extract_ref_type(self, props_symbol, source_file):
        return self.ref_extractor.extract(props_symbol, source_file)

    def is_readonly(self, prop) -> bool:
        if not prop.declarations:
            return False
        node = prop.declarations[0].node
        return node.type == "property_signature" and any(c.type == "readonly" for c in node.children)

    def extract_jsdoc(self, prop):
        description = self.checker.get_documentation_comment(prop).strip() or None
        default_value = None
        for tag, text in self.checker.get_jsdoc_tags(prop):
            if tag == "default":
                default_value = parse_default_value(text)
        return description, default_value

    def get_type_info(self, prop, source_file):
        if prop.declarations:
            decl = prop.declarations[0]
            if decl.node.type == "property_signature":
                annotation = decl.node.child_by_field_name("type")
                if annotation is not None and annotation.named_children:
                    mapper = getattr(prop, "mapper", None)
                    return self.process_type_node(annotation.named_children[0], decl.source_file, mapper)

        prop_type = self.checker.get_type_of_symbol_at_location(prop, source_file)
        return self.type_info_from_type(self.checker.get_non_nullable_type(prop_type)), False

    def process_type_node(self, node, source_file, mapper=None):
        """Classifies a declared type node; returns (type_info, conditional)."""
        if is_reference(node):
            name = reference_name(node, source_file)
            args = type_arguments(node)
            if name == CONDITIONAL_WRAPPER and args:
                type_info, _ = self.process_type_node(args[0], source_file, mapper)
                return type_info, True
            if name in PRESERVE_TYPE_NAMES:
                return _type_info("reference", name, expanded=name), False
            return self.reference_info(node, source_file, mapper), False

        if node.type == "union_type":
            all_members = flatten_members(node)
            members = [m for m in all_members if not is_nullish(m, source_file)] or all_members
            if len(members) == 1:
                return self.process_type_node(members[0], source_file, mapper)
            texts = [type_node_to_string(m, source_file) for m in members]
            return _type_info("union", " | ".join(texts), members=texts), False

        if node.type == "intersection_type":
            texts = [type_node_to_string(m, source_file) for m in flatten_members(node)]
            return _type_info("intersection", " & ".join(texts), members=texts), False

        if node.type == "parenthesized_type":
            inner = [c for c in node.named_children if c.type != "comment"]
            if inner:
                return self.process_type_node(inner[0], source_file, mapper)

        return self.type_info_from_node(node, source_file, mapper), False

    def reference_info(self, node, source_file, mapper=None):
        resolved = self.checker.get_type_from_type_node(node, source_file, mapper)
        expanded = self.checker.type_to_string(resolved, in_type_alias=True)
        return _type_info("reference", type_node_to_string(node, source_file), expanded=expanded)

    def type_info_from_node(self, node, source_file, mapper=None):
        text = type_node_to_string(node, source_file)
        kind = node.type
        if kind == "predefined_type" and text in PRIMITIVE_KEYWORDS:
            return _type_info("primitive", text)
        if kind == "literal_type":
            child = literal_child(node)
            if child is not None and child.type == "undefined":
                return _type_info("primitive", text)
            return _type_info("literal", text)
        if kind == "function_type":
            return _type_info("function", text)
        if kind == "array_type":
            return _type_info("array", text)
        if kind == "tuple_type":
            return _type_info("tuple", text)
        if kind == "object_type":
            return _type_info("object", text)
        if is_reference(node):
            return self.reference_info(node, source_file, mapper)
        return _type_info("unknown", text)

    def type_info_from_type(self, t):
        text = self.checker.type_to_string(t, in_type_alias=True)
        if t.is_union() or t.is_intersection():
            members = [self.checker.type_to_string(m) for m in t.types]
            return _type_info("union" if t.is_union() else "intersection", text, members=members)

        flags = t.get_flags()
        if flags & PRIMITIVE_FLAGS:
            return _type_info("primitive", text)
        if flags & TypeFlags.LITERAL:
            return _type_info("literal", text)
        if self.checker.get_call_signatures(t):
            return _type_info("function", text)
        if self.checker.is_array_type(t):
            return _type_info("array", text)
        if self.checker.is_tuple_type(t):
            return _type_info("tuple", text)
        if flags & TypeFlags.OBJECT:
            if t.get_symbol() is not None:
                return _type_info("reference", text, expanded=text)
            return _type_info("object", text)
        if flags & TypeFlags.OPAQUE and t.name:
            return _type_info("reference", text, expanded=text)
        return _type_info("unknown", text)
