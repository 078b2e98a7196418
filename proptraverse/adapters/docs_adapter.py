IGNORED_PROPS = {"key", "ref", "__css", "css", "recipe"}

DEFAULT_ALLOWED_FRAGMENTS = (
    "styled-system/generated/recipes.gen.d.ts",
    "types/components/",
    "@ark-ui/react/",
    "@zag-js/",
)


def should_include_prop(prop_name: str) -> bool:
    return prop_name not in IGNORED_PROPS


def should_include_source_file(source_file, allowed_fragments=DEFAULT_ALLOWED_FRAGMENTS) -> bool:
    if not source_file:
        return False
    source_file = source_file.replace("\\", "/")
    if "/node_modules/" not in source_file:
        return True
    return any(fragment in source_file for fragment in allowed_fragments)


def sort_key(item):
    name = item["name"]
    return (name.casefold(), name)


def filter_props(props, allowed_fragments=DEFAULT_ALLOWED_FRAGMENTS):
    return [
        prop for prop in props
        if should_include_source_file(prop.get("sourceFile"), allowed_fragments) and should_include_prop(prop["name"])
    ]


def make_component_entry(name, props, ref):
    """Builds the serialized entry; `sourceFile` is a filtering key only and is dropped here."""
    return {
        "name": name,
        "props": [
            {k: v for k, v in prop.items() if k != "sourceFile"}
            for prop in sorted(props, key=sort_key)
        ],
        "ref": ref,
    }


def adapt_components(entries):
    return sorted(entries, key=sort_key)
