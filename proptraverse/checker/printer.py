import re
import json

from proptraverse.checker.types import (
    ArrayType, IntersectionType, IntrinsicType, LiteralType, ObjectType, OpaqueType,
    TupleType, TypeParameter, UnionType,
)
from proptraverse.program.binder import SymbolFlags

INDENT = "    "
_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


def format_literal(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False)


def format_property_name(name: str) -> str:
    return name if _IDENTIFIER.match(name) else json.dumps(name, ensure_ascii=False)


class TypePrinter:
    """Renders checker types the way `typeToString` does, without truncation.

    `in_type_alias` skips the alias name of the outermost type so the alias body
    is shown; `expand_top` does the same for a named interface; `multiline`
    breaks object literals over indented lines.
    """

    def __init__(self, checker, multiline=False, in_type_alias=False, expand_top=False):
        self.checker = checker
        self.multiline = multiline
        self.in_type_alias = in_type_alias
        self.expand_top = expand_top
        self._visiting = set()

    def print_type(self, type) -> str:
        return self._print(type, 0, top=True)

    def _print(self, t, depth, top=False):
        if t.alias_symbol is not None and not (top and (self.in_type_alias or self.expand_top)):
            return self._named(t.alias_symbol.name, t.alias_type_arguments, depth)
        if isinstance(t, IntrinsicType):
            return t.name
        if isinstance(t, LiteralType):
            return format_literal(t.value)
        if isinstance(t, UnionType):
            return " | ".join(self._constituent(m, depth, in_intersection=False) for m in t.types)
        if isinstance(t, IntersectionType):
            return " & ".join(self._constituent(m, depth, in_intersection=True) for m in t.types)
        if isinstance(t, TypeParameter):
            return t.name
        if isinstance(t, OpaqueType):
            if t.name and t.type_arguments:
                return self._named(t.name, t.type_arguments, depth)
            return t.text
        if isinstance(t, ArrayType):
            element = self._print(t.element_type, depth)
            if self._needs_parens(t.element_type):
                element = f"({element})"
            return ("readonly " if t.readonly else "") + element + "[]"
        if isinstance(t, TupleType):
            return ("readonly " if t.readonly else "") + self._tuple(t, depth)
        if isinstance(t, ObjectType):
            if t.symbol is not None and not (top and self.expand_top):
                return self._named(t.symbol.name, t.type_arguments, depth)
            return self._object_literal(t, depth)
        return "unknown"

    def _named(self, name, type_arguments, depth):
        if not type_arguments:
            return name
        return f"{name}<{', '.join(self._print(a, depth) for a in type_arguments)}>"

    def _is_function_literal(self, t):
        if not isinstance(t, ObjectType) or isinstance(t, (ArrayType, TupleType)) or t.alias_symbol is not None:
            return False
        if t.symbol is not None:
            return False
        t.resolve_members()
        return not t.members and not t.index_infos and len(t.call_signatures) == 1

    def _needs_parens(self, t):
        if t.alias_symbol is not None:
            return False
        return isinstance(t, (UnionType, IntersectionType)) or self._is_function_literal(t)

    def _constituent(self, t, depth, in_intersection):
        text = self._print(t, depth)
        if t.alias_symbol is None and (
            self._is_function_literal(t) or (in_intersection and isinstance(t, UnionType))
        ):
            return f"({text})"
        return text

    def _tuple(self, t, depth):
        parts = []
        for (element, optional, rest), label in zip(t.element_types, t.labels):
            text = self._print(element, depth)
            if rest:
                text = "..." + (f"{label}: " if label else "") + text
            elif label:
                text = f"{label}{'?' if optional else ''}: {text}"
            elif optional:
                text += "?"
            parts.append(text)
        return "[" + ", ".join(parts) + "]"

    def format_signature(self, signature, depth, arrow=True):
        params = []
        for name, ptype, optional, rest in signature.parameters:
            prefix = "..." if rest else ""
            suffix = "?" if optional and not rest else ""
            params.append(f"{prefix}{name}{suffix}: {self._print(ptype, depth)}")
        type_params = ""
        if signature.type_parameters:
            type_params = "<" + ", ".join(tp.name for tp in signature.type_parameters) + ">"
        separator = " => " if arrow else ": "
        return f"{type_params}({', '.join(params)}){separator}{self._print(signature.return_type, depth)}"

    def _object_literal(self, t, depth):
        if id(t) in self._visiting:
            return "..."
        self._visiting.add(id(t))
        try:
            t.resolve_members()
            if not t.members and not t.index_infos and len(t.call_signatures) == 1:
                return self.format_signature(t.call_signatures[0], depth)

            inner = depth + 1
            members = []
            for signature in t.call_signatures:
                members.append(self.format_signature(signature, inner, arrow=False))
            for info in t.index_infos:
                readonly = "readonly " if info.readonly else ""
                members.append(
                    f"{readonly}[{info.key_name}: {self._print(info.key_type, inner)}]: {self._print(info.type, inner)}"
                )
            for prop in t.members.values():
                members.append(self._property(prop, inner))
        finally:
            self._visiting.discard(id(t))

        if not members:
            return "{}"
        if self.multiline:
            pad = INDENT * inner
            body = "".join(f"{pad}{m};\n" for m in members)
            return "{\n" + body + INDENT * depth + "}"
        return "{ " + " ".join(f"{m};" for m in members) + " }"

    def _property(self, prop, depth):
        name = format_property_name(prop.name)
        optional = "?" if prop.flags & SymbolFlags.OPTIONAL else ""
        prop_type = self.checker.get_type_of_symbol(prop)
        if prop.flags & SymbolFlags.METHOD and self._is_function_literal(prop_type):
            return f"{name}{optional}{self.format_signature(prop_type.call_signatures[0], depth, arrow=False)}"
        readonly = "readonly " if prop.flags & SymbolFlags.READONLY else ""
        return f"{readonly}{name}{optional}: {self._print(prop_type, depth)}"
