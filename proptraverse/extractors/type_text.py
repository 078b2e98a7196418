REFERENCE_NODES = ("type_identifier", "nested_type_identifier", "generic_type")


def is_reference(node):
    return node.type in REFERENCE_NODES


def reference_name(node, source_file):
    """Rightmost identifier of a type reference (`React.ReactNode` -> `ReactNode`)."""
    if node.type == "generic_type":
        node = node.child_by_field_name("name")
    if node is None:
        return None
    if node.type == "type_identifier":
        return source_file.get_text(node)
    if node.type == "nested_type_identifier":
        name = node.child_by_field_name("name")
        return source_file.get_text(name) if name is not None else None
    return None


def type_arguments(node):
    if node.type != "generic_type":
        return []
    args = node.child_by_field_name("type_arguments")
    if args is None:
        return []
    return [a for a in args.named_children if a.type != "comment"]


def flatten_members(node):
    """Constituents of a union or intersection node in the order they were written."""
    members = []
    for child in node.named_children:
        if child.type == node.type:
            members.extend(flatten_members(child))
        elif child.type != "comment":
            members.append(child)
    return members


def literal_child(node):
    return node.named_children[0] if node.type == "literal_type" and node.named_children else None


def is_nullish(node, source_file):
    if node.type == "literal_type":
        child = literal_child(node)
        return child is not None and child.type in ("null", "undefined")
    if node.type in ("predefined_type", "type_identifier"):
        return source_file.get_text(node).strip() in ("null", "undefined")
    return False


def type_node_to_string(node, source_file):
    """Renders a type node close to how it was written.

    References keep only their rightmost name, string literals are single
    quoted and function parameters without an annotation read as `any`.
    """
    t = node.type
    if is_reference(node):
        name = reference_name(node, source_file)
        args = type_arguments(node)
        if name:
            if args:
                return f"{name}<{', '.join(type_node_to_string(a, source_file) for a in args)}>"
            return name

    if t == "literal_type":
        child = literal_child(node)
        if child is not None and child.type == "string":
            body = source_file.get_text(child)[1:-1]
            return f"'{body}'"
        if child is not None:
            return source_file.get_text(child).strip()

    if t == "predefined_type":
        return " ".join(source_file.get_text(node).split())

    if t == "array_type":
        return type_node_to_string(node.named_children[0], source_file) + "[]"

    if t == "tuple_type":
        elements = [c for c in node.named_children if c.type != "comment"]
        return "[" + ", ".join(type_node_to_string(e, source_file) for e in elements) + "]"

    if t == "function_type":
        params = []
        formal = node.child_by_field_name("parameters")
        for param in formal.named_children if formal is not None else []:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = param.child_by_field_name("pattern")
            name = source_file.get_compact_text(pattern) if pattern is not None else "arg"
            annotation = param.child_by_field_name("type")
            if annotation is not None and annotation.named_children:
                param_type = type_node_to_string(annotation.named_children[0], source_file)
            else:
                param_type = "any"
            params.append(f"{name}: {param_type}")
        return_node = node.child_by_field_name("return_type")
        return_type = type_node_to_string(return_node, source_file) if return_node is not None else "void"
        return f"({', '.join(params)}) => {return_type}"

    if t == "union_type":
        return " | ".join(type_node_to_string(m, source_file) for m in flatten_members(node))

    if t == "intersection_type":
        return " & ".join(type_node_to_string(m, source_file) for m in flatten_members(node))

    if t == "parenthesized_type":
        inner = [c for c in node.named_children if c.type != "comment"]
        if inner:
            return f"({type_node_to_string(inner[0], source_file)})"

    return source_file.get_compact_text(node)
