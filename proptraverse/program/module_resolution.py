import os
import re
import json

SOURCE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts", ".d.mts", ".d.cts")


def _try_file(candidate):
    if os.path.isfile(candidate) and candidate.endswith(SOURCE_EXTENSIONS):
        return candidate
    base = re.sub(r"\.(m|c)?jsx?$", "", candidate)
    for ext in (".ts", ".tsx", ".d.ts"):
        if os.path.isfile(base + ext):
            return base + ext
    return None


def _read_package_types(package_dir):
    package_json = os.path.join(package_dir, "package.json")
    if not os.path.isfile(package_json):
        return None
    try:
        with open(package_json, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return None
    for key in ("types", "typings"):
        if isinstance(data.get(key), str):
            return os.path.normpath(os.path.join(package_dir, data[key]))
    return None


def _try_directory(candidate):
    if not os.path.isdir(candidate):
        return None
    types = _read_package_types(candidate)
    if types:
        resolved = _try_file(types) or _try_directory(types)
        if resolved:
            return resolved
    for ext in (".ts", ".tsx", ".d.ts"):
        index = os.path.join(candidate, "index" + ext)
        if os.path.isfile(index):
            return index
    return None


def _try_path(candidate):
    return _try_file(candidate) or _try_directory(candidate)


def _types_package_name(specifier):
    if specifier.startswith("@"):
        scope, _, rest = specifier[1:].partition("/")
        name, _, sub = rest.partition("/")
        mangled = f"{scope}__{name}"
        return mangled + ("/" + sub if sub else "")
    return specifier


def _match_paths(specifier, paths):
    def sort_key(item):
        pat = item[0]
        return (pat.count("*"), -len(pat))

    for pattern, targets in sorted(paths.items(), key=sort_key):
        if "*" in pattern:
            regex = "^" + re.escape(pattern).replace(r"\*", "(.*)") + "$"
            m = re.match(regex, specifier)
            if not m:
                continue
            wildcard = m.group(1)
        elif pattern == specifier:
            wildcard = ""
        else:
            continue
        yield [t.replace("*", wildcard, 1) for t in targets]


class ModuleResolver:
    def __init__(self, config):
        self.config = config
        self._cache = {}

    def resolve(self, specifier: str, containing_file: str):
        key = (specifier, os.path.dirname(containing_file))
        if key not in self._cache:
            self._cache[key] = self._resolve(specifier, containing_file)
        return self._cache[key]

    def _resolve(self, specifier, containing_file):
        containing_dir = os.path.dirname(containing_file)
        if specifier.startswith(("./", "../")) or specifier in (".", "..") or os.path.isabs(specifier):
            return _try_path(os.path.normpath(os.path.join(containing_dir, specifier)))

        if self.config is not None:
            for targets in _match_paths(specifier, self.config.paths):
                for target in targets:
                    resolved = _try_path(os.path.normpath(os.path.join(self.config.paths_base, target)))
                    if resolved:
                        return resolved
            if self.config.base_url:
                resolved = _try_path(os.path.normpath(os.path.join(self.config.base_url, specifier)))
                if resolved:
                    return resolved

        current = containing_dir
        while True:
            node_modules = os.path.join(current, "node_modules")
            if os.path.isdir(node_modules):
                resolved = _try_path(os.path.join(node_modules, specifier))
                if resolved:
                    return resolved
                resolved = _try_path(os.path.join(node_modules, "@types", _types_package_name(specifier)))
                if resolved:
                    return resolved
            parent = os.path.dirname(current)
            if parent == current:
                return None
            current = parent


def automatic_type_packages(config):
    """The @types packages every program includes unless compilerOptions.types narrows them."""
    types_dir = os.path.join(config.root_dir, "node_modules", "@types")
    names = config.options.get("types")
    if names is None:
        names = sorted(os.listdir(types_dir)) if os.path.isdir(types_dir) else []
    entries = []
    for name in names:
        resolved = _try_directory(os.path.join(types_dir, _types_package_name(name)))
        if resolved:
            entries.append(resolved)
    return entries
