import re

from proptraverse.checker.types import OpaqueType, TypeParameter
from proptraverse.extractors.type_text import (
    flatten_members, is_reference, reference_name, type_arguments, type_node_to_string,
)
from proptraverse.program.binder import SymbolFlags

REF_ATTRIBUTES = "RefAttributes"

REF_TYPE_NAMES = {"Ref", "RefObject", "MutableRefObject", "ForwardedRef", "LegacyRef"}

PLATFORM_ELEMENT_PATTERNS = [
    re.compile(r"^HTML\w*Element$"),
    re.compile(r"^SVG\w*Element$"),
    re.compile(r"^Element$"),
    re.compile(r"^Document$"),
    re.compile(r"^Window$"),
    re.compile(r"^Node$"),
]


def is_platform_element_type(type_name: str) -> bool:
    return any(pattern.match(type_name) for pattern in PLATFORM_ELEMENT_PATTERNS)


def get_type_name(t):
    symbol = t.get_symbol() or t.alias_symbol
    if symbol is not None:
        return symbol.get_name()
    if isinstance(t, OpaqueType):
        return t.name
    return None


class RefExtractor:
    """Finds the imperative handle a component exposes through its forwarded ref.

    Each strategy handles one declaration pattern and returns a RefInfo dict or
    None; `extract` returns the first hit.
    """

    def __init__(self, checker):
        self.checker = checker
        self.strategies = [
            self.from_interface_heritage,
            self.from_alias_type_node,
            self.from_component,
            self.from_ref_property,
        ]

    def extract(self, props_symbol, source_file):
        if not props_symbol.declarations:
            return None
        for strategy in self.strategies:
            ref = strategy(props_symbol, source_file)
            if ref is not None:
                return ref
        return None

    def format_expanded(self, t) -> str:
        return self.checker.type_to_string(t, multiline=True, in_type_alias=True, expand_top=True)

    def _ref_info(self, ref_type, element_type, expanded_type):
        return {
            "type": ref_type,
            "elementType": element_type,
            "expandedType": expanded_type,
            "imperative": not is_platform_element_type(element_type),
        }

    # -- strategy 1
    def from_interface_heritage(self, props_symbol, source_file):
        for decl in props_symbol.declarations:
            if decl.node.type != "interface_declaration":
                continue
            for clause in decl.node.named_children:
                if clause.type != "extends_type_clause":
                    continue
                for base in clause.named_children:
                    if not is_reference(base) or reference_name(base, decl.source_file) != REF_ATTRIBUTES:
                        continue
                    args = type_arguments(base)
                    if args:
                        return self.create_ref_info(args[0], decl.source_file)
        return None

    # -- strategy 2
    def from_alias_type_node(self, props_symbol, source_file):
        for decl in props_symbol.declarations:
            if decl.node.type != "type_alias_declaration":
                continue
            value = decl.node.child_by_field_name("value")
            if value is not None:
                ref = self._from_type_node(value, decl.source_file)
                if ref is not None:
                    return ref
        return None

    def _from_type_node(self, node, source_file):
        if node.type == "intersection_type":
            for member in flatten_members(node):
                ref = self._from_type_node(member, source_file)
                if ref is not None:
                    return ref
            return None

        if is_reference(node):
            args = type_arguments(node)
            if reference_name(node, source_file) == REF_ATTRIBUTES and args:
                return self.create_ref_info(args[0], source_file)
            resolved = self.checker.get_type_from_type_node(node, source_file)
            return self._from_members(resolved) or self.from_resolved_type(resolved)

        if node.type == "parenthesized_type":
            inner = [c for c in node.named_children if c.type != "comment"]
            return self._from_type_node(inner[0], source_file) if inner else None
        return None

    def create_ref_info(self, type_arg, source_file):
        element_type = type_node_to_string(type_arg, source_file)
        expanded = None
        if not is_platform_element_type(element_type):
            expanded = self.format_expanded(self.checker.get_type_from_type_node(type_arg, source_file))
        return self._ref_info(f"{REF_ATTRIBUTES}<{element_type}>", element_type, expanded)

    # -- strategy 3
    def from_component(self, props_symbol, source_file):
        component_name = re.sub(r"Props$", "", props_symbol.get_name())
        module = self.checker.get_symbol_at_location(source_file)
        if module is None:
            return None
        component = self.checker.get_exports_of_module(module).get(component_name)
        if component is None:
            return None
        if component.flags & SymbolFlags.ALIAS:
            component = self.checker.get_aliased_symbol(component)
        return self.from_component_type(self.checker.get_type_of_symbol(component))

    def from_component_type(self, t):
        for arg in self.checker.get_type_arguments(t):
            ref = self._from_props_intersection(arg)
            if ref is not None:
                return ref
        if t.is_intersection():
            return self._from_props_intersection(t)
        for arg in t.alias_type_arguments or []:
            ref = self._from_props_intersection(arg)
            if ref is not None:
                return ref
        return None

    def _from_props_intersection(self, t):
        return self._from_members(t) or self.from_resolved_type(t)

    def _from_members(self, t):
        if t.is_union() or t.is_intersection():
            for member in t.types:
                ref = self.from_resolved_type(member)
                if ref is not None:
                    return ref
        return None

    def from_resolved_type(self, t):
        if get_type_name(t) != REF_ATTRIBUTES:
            return None
        args = self.checker.get_type_arguments(t)
        # an uninferred `T` says nothing about the handle
        if not args or isinstance(args[0], TypeParameter):
            return None
        element_type = self.checker.type_to_string(args[0])
        expanded = None
        if not is_platform_element_type(element_type):
            expanded = self.format_expanded(args[0])
        return self._ref_info(f"{REF_ATTRIBUTES}<{element_type}>", element_type, expanded)

    # -- strategy 4
    def from_ref_property(self, props_symbol, source_file):
        declared = self.checker.get_declared_type_of_symbol(props_symbol)
        ref_prop = next((p for p in self.checker.get_properties_of_type(declared) if p.get_name() == "ref"), None)
        if ref_prop is None or not ref_prop.declarations:
            return None
        decl = ref_prop.declarations[0]
        if decl.node.type != "property_signature":
            return None
        annotation = decl.node.child_by_field_name("type")
        if annotation is None or not annotation.named_children:
            return None
        type_node = annotation.named_children[0]
        element_type = self._ref_element_type(type_node, decl.source_file)
        if element_type is None:
            return None
        return self.create_ref_info_from_element_type(element_type, type_node, decl.source_file)

    def _ref_element_type(self, node, source_file):
        if node.type == "union_type":
            for member in flatten_members(node):
                element_type = self._ref_element_type(member, source_file)
                if element_type is not None:
                    return element_type
            return None
        if not is_reference(node):
            return None
        args = type_arguments(node)
        if reference_name(node, source_file) in REF_TYPE_NAMES and args:
            return type_node_to_string(args[0], source_file)
        return self._element_type_from_resolved(self.checker.get_type_from_type_node(node, source_file))

    def _element_type_from_resolved(self, t):
        if t.is_union() or t.is_intersection():
            for member in t.types:
                element_type = self._element_type_from_resolved(member)
                if element_type is not None:
                    return element_type
        args = self.checker.get_type_arguments(t)
        if args and get_type_name(t) in REF_TYPE_NAMES:
            return self.checker.type_to_string(args[0])
        return None

    def _inner_ref_type(self, t):
        if t.is_union() or t.is_intersection():
            for member in t.types:
                inner = self._inner_ref_type(member)
                if inner is not None:
                    return inner
        args = self.checker.get_type_arguments(t)
        return args[0] if args else None

    def create_ref_info_from_element_type(self, element_type, type_node, source_file):
        expanded = None
        if not is_platform_element_type(element_type):
            inner = self._inner_ref_type(self.checker.get_type_from_type_node(type_node, source_file))
            if inner is not None:
                expanded = self.format_expanded(inner)
        return self._ref_info(type_node_to_string(type_node, source_file), element_type, expanded)
