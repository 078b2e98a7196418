import os
import json

import pathspec

from proptraverse.registry.language_registry import is_typescript_file

DEFAULT_INCLUDE = ["**/*"]
DEFAULT_EXCLUDE = ["node_modules", "bower_components", "jspm_packages"]

BOOLEAN_OPTIONS = {
    "allowJs", "allowSyntheticDefaultImports", "declaration", "esModuleInterop",
    "isolatedModules", "noEmit", "resolveJsonModule", "skipLibCheck", "strict",
    "strictNullChecks", "noImplicitAny", "composite", "incremental",
}


class ConfigError(RuntimeError):
    """Raised when a tsconfig file cannot be read or contains invalid options."""


class ParsedConfig:
    def __init__(self, config_path, options, file_names, root_dir):
        self.config_path = config_path
        self.options = options
        self.file_names = file_names
        self.root_dir = root_dir
        self.config_dir = os.path.dirname(config_path)

    @property
    def base_url(self):
        base_url = self.options.get("baseUrl")
        if base_url is None:
            return None
        return os.path.normpath(os.path.join(self.config_dir, base_url))

    @property
    def paths(self):
        return self.options.get("paths") or {}

    @property
    def paths_base(self):
        return self.base_url or self.config_dir


def strip_json_comments(text: str) -> str:
    """Removes comments and trailing commas from JSONC text, leaving strings intact."""
    out = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        elif ch == ",":
            j = i + 1
            while j < n and text[j] in " \t\r\n":
                j += 1
            if j < n and text[j] in "]}":
                i += 1
                continue
            out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _read_json(path, errors):
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        errors.append(f"Cannot read file '{path}': {e.strerror or e}")
        return None
    try:
        data = json.loads(strip_json_comments(raw) or "{}")
    except json.JSONDecodeError as e:
        errors.append(f"Failed to parse '{path}': {e.msg} (line {e.lineno}, column {e.colno})")
        return None
    if not isinstance(data, dict):
        errors.append(f"'{path}' must contain an object at the root")
        return None
    return data


def _resolve_extends(extends, config_dir):
    if extends.startswith((".", "/")) or os.path.isabs(extends):
        candidate = os.path.normpath(os.path.join(config_dir, extends))
        if not candidate.endswith(".json") and not os.path.isfile(candidate):
            candidate += ".json"
        return candidate

    current = config_dir
    while True:
        base = os.path.join(current, "node_modules", extends)
        for candidate in (base, base + ".json", os.path.join(base, "tsconfig.json")):
            if os.path.isfile(candidate):
                return candidate
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def _is_string_list(value):
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _validate(data, path, errors):
    options = data.get("compilerOptions", {})
    if not isinstance(options, dict):
        errors.append(f"{path}: 'compilerOptions' must be an object")
        options = {}
    for key in ("files", "include", "exclude"):
        if key in data and not _is_string_list(data[key]):
            errors.append(f"{path}: '{key}' must be an array of strings")
    if "baseUrl" in options and not isinstance(options["baseUrl"], str):
        errors.append(f"{path}: compiler option 'baseUrl' requires a value of type string")
    if "paths" in options:
        paths = options["paths"]
        if not isinstance(paths, dict) or not all(_is_string_list(v) for v in paths.values()):
            errors.append(f"{path}: compiler option 'paths' must map patterns to arrays of strings")
    if "types" in options and not _is_string_list(options["types"]):
        errors.append(f"{path}: compiler option 'types' must be an array of strings")
    for key in BOOLEAN_OPTIONS:
        if key in options and not isinstance(options[key], bool):
            errors.append(f"{path}: compiler option '{key}' requires a value of type boolean")
    return options


def _load_chain(path, errors, seen):
    """Returns (options, {key: (value, declaring_dir)}) for a config and its bases."""
    path = os.path.abspath(path)
    if path in seen:
        errors.append(f"Circularity detected while resolving configuration: {path}")
        return {}, {}
    seen.add(path)

    data = _read_json(path, errors)
    if data is None:
        return {}, {}
    config_dir = os.path.dirname(path)
    own_options = _validate(data, path, errors)

    options, selection = {}, {}
    extends = data.get("extends")
    if extends is not None:
        bases = [extends] if isinstance(extends, str) else extends
        if not _is_string_list(bases):
            errors.append(f"{path}: 'extends' must be a string or an array of strings")
            bases = []
        for base in bases:
            base_path = _resolve_extends(base, config_dir)
            if base_path is None or not os.path.isfile(base_path):
                errors.append(f"File '{base}' specified in 'extends' of '{path}' not found")
                continue
            base_options, base_selection = _load_chain(base_path, errors, seen)
            base_dir = os.path.dirname(base_path)
            for key in ("baseUrl", "outDir"):
                if isinstance(base_options.get(key), str):
                    base_options[key] = os.path.normpath(os.path.join(base_dir, base_options[key]))
            options.update(base_options)
            selection.update(base_selection)

    for key, value in own_options.items():
        if key in ("baseUrl", "outDir") and isinstance(value, str):
            value = os.path.normpath(os.path.join(config_dir, value))
        options[key] = value
    for key in ("files", "include", "exclude"):
        if key in data and _is_string_list(data[key]):
            selection[key] = (data[key], config_dir)
    return options, selection


def _anchored(patterns, declaring_dir, config_dir):
    anchored = []
    for pattern in patterns:
        absolute = os.path.normpath(os.path.join(declaring_dir, pattern))
        rel = os.path.relpath(absolute, config_dir).replace("\\", "/")
        if rel == ".":
            rel = "**"
        anchored.append("/" + rel.lstrip("/"))
    return anchored


def match_config_files(config_dir, include, exclude):
    include_spec = pathspec.PathSpec.from_lines("gitwildmatch", include)
    exclude_spec = pathspec.PathSpec.from_lines("gitwildmatch", exclude)
    matched = []
    for dirpath, dirnames, filenames in os.walk(config_dir):
        dirnames[:] = sorted(d for d in dirnames if d != "node_modules" and not d.startswith("."))
        for fn in sorted(filenames):
            if not is_typescript_file(fn):
                continue
            full = os.path.join(dirpath, fn)
            rel = os.path.relpath(full, config_dir).replace("\\", "/")
            if include_spec.match_file(rel) and not exclude_spec.match_file(rel):
                matched.append(full)
    return matched


def load_tsconfig(config_path: str, root_dir: str = None) -> ParsedConfig:
    errors = []
    options, selection = _load_chain(config_path, errors, set())
    if errors:
        raise ConfigError("Failed to parse tsconfig: " + "\n".join(errors))

    config_dir = os.path.dirname(os.path.abspath(config_path))
    root_dir = os.path.abspath(root_dir) if root_dir else config_dir

    file_names = []
    if "files" in selection:
        files, declaring_dir = selection["files"]
        for name in files:
            full = os.path.normpath(os.path.join(declaring_dir, name))
            if not os.path.isfile(full):
                errors.append(f"File '{full}' not found")
            file_names.append(full)

    if "include" in selection or "files" not in selection:
        include, include_dir = selection.get("include", (DEFAULT_INCLUDE, config_dir))
        exclude, exclude_dir = selection.get("exclude", (DEFAULT_EXCLUDE, config_dir))
        exclude = list(exclude)
        if "exclude" not in selection and isinstance(options.get("outDir"), str):
            exclude.append(os.path.relpath(options["outDir"], exclude_dir))
        file_names.extend(
            match_config_files(
                root_dir,
                _anchored(include, include_dir, root_dir),
                _anchored(exclude, exclude_dir, root_dir),
            )
        )

    if not file_names:
        errors.append(f"No inputs were found in config file '{os.path.abspath(config_path)}'")
    if errors:
        raise ConfigError("Failed to parse tsconfig: " + "\n".join(errors))

    unique = list(dict.fromkeys(os.path.abspath(f) for f in file_names))
    return ParsedConfig(os.path.abspath(config_path), options, unique, root_dir)
