import tree_sitter_typescript
from tree_sitter import Language, Parser

TS_EXTENSIONS = (".d.ts", ".d.mts", ".d.cts", ".ts", ".tsx", ".mts", ".cts")

_LANGUAGES = {}


def _language(name: str) -> Language:
    if name not in _LANGUAGES:
        if name == "tsx":
            _LANGUAGES[name] = Language(tree_sitter_typescript.language_tsx())
        elif name == "typescript":
            _LANGUAGES[name] = Language(tree_sitter_typescript.language_typescript())
        else:
            raise ValueError(f"No grammar for language: {name}")
    return _LANGUAGES[name]


def language_for_file(file_path: str) -> str:
    lower = file_path.lower()
    if lower.endswith(".tsx"):
        return "tsx"
    if lower.endswith(TS_EXTENSIONS):
        return "typescript"
    raise ValueError(f"Unsupported source file: {file_path}")


def get_parser(file_path: str) -> Parser:
    return Parser(_language(language_for_file(file_path)))


def is_typescript_file(file_path: str) -> bool:
    return file_path.lower().endswith(TS_EXTENSIONS)
