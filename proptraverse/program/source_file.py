import re

import chardet

from proptraverse.registry.language_registry import get_parser

_WHITESPACE = re.compile(r"\s+")
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT = re.compile(r"//[^\n]*")


def read_source_text(file_path: str) -> str:
    with open(file_path, "rb") as f:
        raw = f.read()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        guess = chardet.detect(raw)
        return raw.decode(guess["encoding"] or "utf-8", errors="replace")


class SourceFile:
    def __init__(self, file_name: str, text: str):
        self.file_name = file_name
        self.text = text
        self.source_bytes = text.encode("utf-8")
        self.tree = get_parser(file_name).parse(self.source_bytes)
        self.symbol = None

    @property
    def root_node(self):
        return self.tree.root_node

    @property
    def is_declaration_file(self) -> bool:
        return re.search(r"\.d\.[cm]?ts$", self.file_name) is not None

    def get_text(self, node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def get_compact_text(self, node) -> str:
        """Node text with comments dropped and whitespace collapsed."""
        text = _BLOCK_COMMENT.sub("", self.get_text(node))
        text = _LINE_COMMENT.sub("", text)
        return _WHITESPACE.sub(" ", text).strip()

    def get_jsdoc(self, node):
        """Returns the closest `/** ... */` comment directly preceding a node."""
        target = node
        while target.parent is not None and target.parent.type in ("export_statement", "ambient_declaration"):
            target = target.parent
        if target.type == "variable_declarator" and target.parent is not None:
            target = target.parent
            if target.parent is not None and target.parent.type in ("export_statement", "ambient_declaration"):
                target = target.parent
        sib = target.prev_sibling
        while sib is not None and sib.type == "comment":
            text = self.get_text(sib)
            if text.startswith("/**"):
                return text
            sib = sib.prev_sibling
        return None

    def __repr__(self):
        return f"SourceFile({self.file_name!r})"


def parse_jsdoc(comment: str):
    """Splits a JSDoc block into its description and a list of (tag, text) pairs."""
    body = comment.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]

    lines = []
    for line in body.splitlines():
        stripped = line.strip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
            if stripped.startswith(" "):
                stripped = stripped[1:]
        lines.append(stripped.rstrip())

    description = []
    tags = []
    for line in lines:
        m = re.match(r"@(\w+)\s*(.*)$", line.strip())
        if m:
            tags.append([m.group(1), m.group(2)])
        elif tags:
            tags[-1][1] = (tags[-1][1] + "\n" + line).strip() if line.strip() else tags[-1][1]
        else:
            description.append(line)

    text = "\n".join(description).strip()
    return text, [(name, value.strip()) for name, value in tags]
