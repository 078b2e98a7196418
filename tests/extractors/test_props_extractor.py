import os

import pytest

from proptraverse.extractors.props_extractor import PropsGenerator, parse_default_value

BUTTON = """
    import * as React from 'react';
    import type { ConditionalValue } from './conditions';

    export type ButtonSize = 'sm' | 'md' | 'lg';
    type Variant = 'solid' | 'outline';

    export interface ButtonProps {
        /**
         * Size of the button.
         * @default "md"
         */
        size?: ButtonSize;
        color?: ConditionalValue<'red' | 'blue'>;
        onClick?: (event: MouseEvent) => void;
        count?: number | null;
        variant: Variant | 'ghost';
        items: string[];
        pair: [string, number];
        children?: React.ReactNode;
        style?: React.CSSProperties;
        meta: { id: string };
        field: keyof Variant;
        readonly label: string;
        nothing: undefined;
        empty: null;
        /** @default true */
        active: true;
        key?: string;
        css?: string;
    }
"""


@pytest.fixture
def button(generator_for):
    generator, root = generator_for({
        "src/components/Button.tsx": BUTTON,
        "src/components/conditions.ts": "export type ConditionalValue<T> = T | { base?: T };",
    })
    source_file = generator.program.get_source_file(os.path.join(root, "src", "components", "Button.tsx"))
    [component] = generator.discover_exported_props_types(source_file)
    props = generator.resolve_props_type(component.symbol, source_file)
    return component, {p["name"]: p for p in props}, root


def test_discovered_component_name(button):
    component, _, _ = button
    assert component.name == "Button"
    assert component.props_type_name == "ButtonProps"


def test_ignored_props_are_dropped(button):
    _, props, _ = button
    assert "key" not in props
    assert "css" not in props


def test_reference_to_local_alias_is_expanded(button):
    _, props, root = button
    size = props["size"]
    assert size["typeInfo"] == {"kind": "reference", "type": "ButtonSize", "expanded": '"sm" | "md" | "lg"'}
    assert size["required"] is False
    assert size["conditional"] is False
    assert size["description"] == "Size of the button."
    assert size["defaultValue"] == "md"
    assert size["sourceFile"] == os.path.join(root, "src", "components", "Button.tsx")


def test_conditional_value_is_unwrapped(button):
    _, props, _ = button
    color = props["color"]
    assert color["conditional"] is True
    assert color["typeInfo"] == {"kind": "union", "type": "'red' | 'blue'", "members": ["'red'", "'blue'"]}


@pytest.mark.parametrize("name, kind, text", [
    ("onClick", "function", "(event: MouseEvent) => void"),
    ("count", "primitive", "number"),
    ("items", "array", "string[]"),
    ("pair", "tuple", "[string, number]"),
    ("meta", "object", "{ id: string }"),
    ("field", "unknown", "keyof Variant"),
    ("nothing", "primitive", "undefined"),
    ("empty", "literal", "null"),
    ("active", "literal", "true"),
])
def test_type_kinds(button, name, kind, text):
    _, props, _ = button
    assert props[name]["typeInfo"] == {"kind": kind, "type": text}


def test_union_keeps_written_members(button):
    _, props, _ = button
    assert props["variant"]["typeInfo"] == {
        "kind": "union",
        "type": "Variant | 'ghost'",
        "members": ["Variant", "'ghost'"],
    }
    assert props["variant"]["required"] is True


def test_preserved_names_are_not_expanded(button):
    _, props, _ = button
    assert props["children"]["typeInfo"] == {"kind": "reference", "type": "ReactNode", "expanded": "ReactNode"}
    assert props["style"]["typeInfo"] == {"kind": "reference", "type": "CSSProperties", "expanded": "CSSProperties"}


def test_readonly_and_jsdoc(button):
    _, props, _ = button
    assert props["label"]["readonly"] is True
    assert props["items"]["readonly"] is False
    assert props["items"]["description"] is None
    assert props["items"]["defaultValue"] is None
    assert props["active"]["defaultValue"] is True


def test_props_without_declared_nodes_use_resolved_types(generator_for):
    generator, root = generator_for({
        "src/components/Grid.tsx": "export type GridProps = Record<'rows' | 'cols', number>;",
    })
    source_file = generator.program.get_source_file(os.path.join(root, "src", "components", "Grid.tsx"))
    [component] = generator.discover_exported_props_types(source_file)
    props = generator.resolve_props_type(component.symbol, source_file)
    assert [p["name"] for p in props] == ["rows", "cols"]
    assert props[0]["typeInfo"] == {"kind": "primitive", "type": "number"}
    assert props[0]["sourceFile"] is None
    assert props[0]["required"] is True


def test_generic_props_members_resolve_through_instantiation(generator_for):
    generator, root = generator_for({
        "src/components/Select.tsx": """
            interface BaseProps<T> { value: T; options: T[]; }
            export interface SelectProps extends BaseProps<'a' | 'b'> { open: boolean; }
        """,
    })
    source_file = generator.program.get_source_file(os.path.join(root, "src", "components", "Select.tsx"))
    [component] = generator.discover_exported_props_types(source_file)
    props = {p["name"]: p for p in generator.resolve_props_type(component.symbol, source_file)}
    assert set(props) == {"open", "value", "options"}
    assert props["value"]["typeInfo"] == {"kind": "reference", "type": "T", "expanded": '"a" | "b"'}
    assert props["options"]["typeInfo"] == {"kind": "array", "type": "T[]"}


def test_discovery_rules(generator_for):
    generator, root = generator_for({
        "src/components/Many.tsx": """
            export interface AProps { a: string; }
            interface HiddenProps { h: string; }
            export type BProps = { b: number };
            export const CProps = 1;
            export interface Other { o: string; }
            export { AProps as AliasProps };
        """,
    })
    source_file = generator.program.get_source_file(os.path.join(root, "src", "components", "Many.tsx"))
    names = [c.name for c in generator.discover_exported_props_types(source_file)]
    assert names == ["A", "B"]


def test_expanded_text_reads_back_as_the_same_type(generator_for):
    generator, root = generator_for({
        "src/components/Point.tsx": """
            type Point = { x: number; y?: string };
            export interface PointProps { point: Point; }
        """,
    })
    source_file = generator.program.get_source_file(os.path.join(root, "src", "components", "Point.tsx"))
    [component] = generator.discover_exported_props_types(source_file)
    [prop] = generator.resolve_props_type(component.symbol, source_file)
    expanded = prop["typeInfo"]["expanded"]
    assert expanded == "{ x: number; y?: string; }"

    again, again_root = generator_for({
        "src/components/Again.tsx": f"""
            type Point = {expanded};
            export interface AgainProps {{ point: Point; }}
        """,
    })
    again_file = again.program.get_source_file(os.path.join(again_root, "src", "components", "Again.tsx"))
    [again_component] = again.discover_exported_props_types(again_file)
    [again_prop] = again.resolve_props_type(again_component.symbol, again_file)
    assert again_prop["typeInfo"]["expanded"] == expanded


def test_from_config_builds_the_program(make_project):
    root = make_project({"src/components/Tag.tsx": "export interface TagProps { text: string; }"})
    component_file = os.path.join(root, "src", "components", "Tag.tsx")
    generator = PropsGenerator.from_config(root, os.path.join(root, "tsconfig.build.json"), [component_file])
    assert component_file in {sf.file_name for sf in generator.get_source_files()}


@pytest.mark.parametrize("raw, expected", [
    ('"md"', "md"),
    ("'sm'", "sm"),
    ("\"'quoted'\"", "'quoted'"),
    ("true", True),
    ("false", False),
    ("null", None),
    ("42", 42),
    ("-1.5", -1.5),
    ("1e3", 1000.0),
    ("  spaced  ", "spaced"),
    ("{ a: 1 }", "{ a: 1 }"),
])
def test_parse_default_value(raw, expected):
    assert parse_default_value(raw) == expected


def test_merged_interface_is_one_component(generator_for):
    generator, root = generator_for({
        "src/components/Panel.tsx": """
            export interface PanelProps { title: string; }
            export interface PanelProps { collapsed?: boolean; }
        """,
    })
    source_file = generator.program.get_source_file(os.path.join(root, "src", "components", "Panel.tsx"))
    components = generator.discover_exported_props_types(source_file)
    assert [c.name for c in components] == ["Panel"]
    props = {p["name"]: p for p in generator.resolve_props_type(components[0].symbol, source_file)}
    assert set(props) == {"title", "collapsed"}
    assert props["title"]["required"] is True
    assert props["collapsed"]["required"] is False
