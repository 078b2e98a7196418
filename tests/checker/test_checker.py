import os

import pytest

from proptraverse.program.binder import SymbolFlags


@pytest.fixture
def typed(program_for):
    def _typed(source):
        program, root = program_for({"src/types.ts": source})
        checker = program.get_type_checker()
        source_file = program.get_source_file(os.path.join(root, "src", "types.ts"))
        exports = checker.get_exports_of_module(checker.get_symbol_at_location(source_file))
        return checker, exports
    return _typed


def alias_text(checker, exports, name):
    return checker.type_to_string(checker.get_declared_type_of_symbol(exports[name]), in_type_alias=True)


def prop_types(checker, t):
    return {
        p.get_name(): checker.type_to_string(checker.get_type_of_symbol(p))
        for p in checker.get_properties_of_type(t)
    }


def test_merged_interface_with_base(typed):
    checker, exports = typed("""
        interface Base { id: string; }
        export interface Merged extends Base { a: number; }
        export interface Merged { b?: boolean; }
    """)
    merged = checker.get_declared_type_of_symbol(exports["Merged"])
    assert prop_types(checker, merged) == {"a": "number", "b": "boolean", "id": "string"}
    optional = {p.get_name() for p in checker.get_properties_of_type(merged) if p.flags & SymbolFlags.OPTIONAL}
    assert optional == {"b"}


def test_generic_instantiation_uses_defaults(typed):
    checker, exports = typed("""
        export interface Box<T, U = string> { value: T; label: U; list: T[]; }
        export type NumberBox = Box<number>;
    """)
    box = checker.get_declared_type_of_symbol(exports["NumberBox"])
    assert checker.type_to_string(box) == "Box<number>"
    assert prop_types(checker, box) == {"value": "number", "label": "string", "list": "number[]"}


def test_declared_generic_keeps_type_parameters(typed):
    checker, exports = typed("export interface Box<T> { value: T; }")
    box = checker.get_declared_type_of_symbol(exports["Box"])
    assert checker.type_to_string(box) == "Box<T>"
    assert prop_types(checker, box) == {"value": "T"}


def test_alias_is_expanded_only_at_the_top(typed):
    checker, exports = typed("""
        export type Size = 'sm' | 'md';
        export type Sized = { size: Size; tone?: 'light' | 'dark' | undefined };
    """)
    sized = checker.get_declared_type_of_symbol(exports["Sized"])
    assert checker.type_to_string(sized) == "Sized"
    assert checker.type_to_string(sized, in_type_alias=True) == '{ size: Size; tone?: "light" | "dark" | undefined; }'
    assert checker.type_to_string(sized, multiline=True, in_type_alias=True) == (
        '{\n    size: Size;\n    tone?: "light" | "dark" | undefined;\n}'
    )


def test_non_nullable_strips_null_and_undefined(typed):
    checker, exports = typed("export type Tone = 'light' | 'dark' | null | undefined;")
    tone = checker.get_declared_type_of_symbol(exports["Tone"])
    assert checker.type_to_string(checker.get_non_nullable_type(tone)) == '"light" | "dark"'


def test_unions_are_flattened_and_deduplicated(typed):
    checker, exports = typed("""
        type Inner = 'b' | 'c';
        export type Outer = 'a' | Inner | 'a' | never;
    """)
    assert alias_text(checker, exports, "Outer") == '"a" | "b" | "c"'


def test_builtin_utility_types(typed):
    checker, exports = typed("""
        interface Person { name: string; age?: number; readonly id: string; }
        export type P1 = Partial<Person>;
        export type P2 = Pick<Person, 'name' | 'age'>;
        export type P3 = Omit<Person, 'id'>;
        export type P4 = Required<Person>;
        export type P5 = Record<'x' | 'y', number>;
        export type K = keyof Person;
        export type N = Person['name'];
        export type NN = NonNullable<string | null | undefined>;
        export type Ex = Exclude<'a' | 'b' | 'c', 'a'>;
        export type Arr = Array<string>;
        export type RoArr = ReadonlyArray<number>;
    """)
    assert checker.type_to_string(checker.get_declared_type_of_symbol(exports["P1"])) == "Partial<Person>"
    assert alias_text(checker, exports, "P1") == "{ name?: string; age?: number; readonly id?: string; }"
    assert alias_text(checker, exports, "P2") == "{ name: string; age?: number; }"
    assert alias_text(checker, exports, "P3") == "{ name: string; age?: number; }"
    assert alias_text(checker, exports, "P4") == "{ name: string; age: number; readonly id: string; }"
    assert alias_text(checker, exports, "P5") == "{ x: number; y: number; }"
    assert alias_text(checker, exports, "K") == '"name" | "age" | "id"'
    assert alias_text(checker, exports, "N") == "string"
    assert alias_text(checker, exports, "NN") == "string"
    assert alias_text(checker, exports, "Ex") == '"b" | "c"'
    assert alias_text(checker, exports, "Arr") == "string[]"
    assert alias_text(checker, exports, "RoArr") == "readonly number[]"


def test_mapped_types(typed):
    checker, exports = typed("""
        interface Person { name: string; age?: number; }
        type Keys = 'top' | 'bottom';
        export type Spacing = { [K in Keys]: number };
        type Flags<T> = { [K in keyof T]: boolean };
        export type PersonFlags = Flags<Person>;
    """)
    assert alias_text(checker, exports, "Spacing") == "{ top: number; bottom: number; }"
    flags = checker.get_declared_type_of_symbol(exports["PersonFlags"])
    assert prop_types(checker, flags) == {"name": "boolean", "age": "boolean"}
    age = next(p for p in checker.get_properties_of_type(flags) if p.get_name() == "age")
    assert age.flags & SymbolFlags.OPTIONAL
    assert age.declarations


def test_functions_methods_and_tuples(typed):
    checker, exports = typed("""
        export type Handler = (event: string, count?: number) => void;
        export type Runner = { run(x: number): string; readonly tag: string };
        export type Pair = [first: string, second?: number];
        export type Plain = [string, boolean];
    """)
    assert alias_text(checker, exports, "Handler") == "(event: string, count?: number) => void"
    assert alias_text(checker, exports, "Runner") == "{ run(x: number): string; readonly tag: string; }"
    assert alias_text(checker, exports, "Plain") == "[string, boolean]"
    handler = checker.get_declared_type_of_symbol(exports["Handler"])
    assert len(checker.get_call_signatures(handler)) == 1
    assert checker.is_tuple_type(checker.get_declared_type_of_symbol(exports["Pair"]))


def test_recursive_aliases_print_by_name(typed):
    checker, exports = typed("""
        export type Tree = { value: string; children: Tree[] };
        export type List = string | List[];
    """)
    assert alias_text(checker, exports, "Tree") == "{ value: string; children: Tree[]; }"
    assert alias_text(checker, exports, "List") == "string | List[]"


def test_typeof_reads_declared_values(typed):
    checker, exports = typed("""
        export declare const theme: { colors: { primary: string } };
        export type Theme = typeof theme;
    """)
    assert alias_text(checker, exports, "Theme") == "{ colors: { primary: string; }; }"


def test_namespace_import_resolves_through_export_assignment(typed):
    checker, exports = typed("""
        import * as React from 'react';
        export type Node = React.ReactNode;
        export type Style = React.CSSProperties;
    """)
    node = checker.get_declared_type_of_symbol(exports["Node"])
    assert checker.type_to_string(node) == "ReactNode"
    assert alias_text(checker, exports, "Node") == "ReactElement | string | number | boolean | null | undefined"
    style = checker.get_declared_type_of_symbol(exports["Style"])
    assert prop_types(checker, style) == {"color": "string", "display": "string"}


def test_unknown_names_stay_opaque(typed):
    checker, exports = typed("export type Target = HTMLDivElement | Map<string, number>;")
    target = checker.get_declared_type_of_symbol(exports["Target"])
    assert checker.type_to_string(target, in_type_alias=True) == "HTMLDivElement | Map<string, number>"
    assert [checker.type_to_string(a) for a in checker.get_type_arguments(target.types[1])] == ["string", "number"]


def test_call_with_explicit_type_arguments(typed):
    checker, exports = typed("""
        import { forwardRef } from 'react';
        interface Handle { focus(): void; }
        export interface FieldProps { label: string; }
        export const Field = forwardRef<Handle, FieldProps>(function Field(props, ref) { return null; });
    """)
    field_type = checker.get_type_of_symbol(exports["Field"])
    assert checker.type_to_string(field_type) == (
        'ForwardRefExoticComponent<Omit<FieldProps, "ref"> & RefAttributes<Handle>>'
    )


def test_documentation_and_tags(typed):
    checker, exports = typed("""
        export interface Documented {
            /**
             * The tone.
             * Second line.
             * @default "info"
             * @deprecated use variant
             */
            tone?: string;
            plain: number;
        }
    """)
    props = {p.get_name(): p for p in checker.get_properties_of_type(checker.get_declared_type_of_symbol(exports["Documented"]))}
    assert checker.get_documentation_comment(props["tone"]) == "The tone.\nSecond line."
    assert checker.get_jsdoc_tags(props["tone"]) == [("default", '"info"'), ("deprecated", "use variant")]
    assert checker.get_documentation_comment(props["plain"]) == ""
    assert checker.get_jsdoc_tags(props["plain"]) == []


def test_call_infers_type_arguments_from_the_callback(typed):
    checker, exports = typed("""
        import * as React from 'react';
        export interface CardProps { title: string; }
        export const Card = React.forwardRef((props: CardProps, ref: React.ForwardedRef<HTMLDivElement>) => null);
        export const Bare = React.forwardRef((props, ref) => null);
    """)
    assert checker.type_to_string(checker.get_type_of_symbol(exports["Card"])) == (
        'ForwardRefExoticComponent<Omit<CardProps, "ref"> & RefAttributes<HTMLDivElement>>'
    )
    assert checker.type_to_string(checker.get_type_of_symbol(exports["Bare"])) == (
        'ForwardRefExoticComponent<Omit<{}, "ref"> & RefAttributes<T>>'
    )


def test_constrained_type_parameter_exposes_constraint_members(typed):
    checker, exports = typed("""
        interface Base { id: string; }
        export interface Holder<T extends Base> { item: T; }
    """)
    holder = checker.get_declared_type_of_symbol(exports["Holder"])
    item = next(p for p in checker.get_properties_of_type(holder) if p.get_name() == "item")
    item_type = checker.get_type_of_symbol(item)
    assert checker.type_to_string(item_type) == "T"
    assert [p.get_name() for p in checker.get_properties_of_type(item_type)] == ["id"]
