import os
from collections import deque

import networkx as nx

from proptraverse.checker.checker import TypeChecker
from proptraverse.program.binder import Binder, create_container, merge_symbol_into, SymbolFlags
from proptraverse.program.module_resolution import ModuleResolver, automatic_type_packages
from proptraverse.program.source_file import SourceFile, read_source_text
from proptraverse.program.tsconfig import load_tsconfig


class Program:
    """A parsed and bound set of source files plus everything they import."""

    def __init__(self, root_names, config=None):
        self.config = config
        self.resolver = ModuleResolver(config)
        self.import_graph = nx.DiGraph()
        self.globals = create_container("globalThis", SymbolFlags.NAMESPACE)
        self.ambient_modules = {}
        self.namespace_scopes = {}
        self._files = {}
        self._resolved_modules = {}
        self._checker = None

        root_names = list(dict.fromkeys(os.path.abspath(name) for name in root_names))
        if config is not None:
            root_names.extend(p for p in automatic_type_packages(config) if p not in root_names)
        self.root_names = root_names
        self._load(root_names)

    def _load(self, root_names):
        binders = []
        queue = deque(root_names)
        while queue:
            file_name = queue.popleft()
            if file_name in self._files:
                continue
            source_file = SourceFile(file_name, read_source_text(file_name))
            binder = Binder(source_file).bind()
            self._files[file_name] = source_file
            self.import_graph.add_node(file_name)
            binders.append(binder)

            for specifier in binder.module_specifiers:
                resolved = self.resolver.resolve(specifier, file_name)
                self._resolved_modules[(file_name, specifier)] = resolved
                if resolved is None:
                    continue
                resolved = os.path.abspath(resolved)
                self.import_graph.add_edge(file_name, resolved, specifier=specifier)
                if resolved not in self._files:
                    queue.append(resolved)

        binders_by_name = {binder.source_file.file_name: binder for binder in binders}
        for file_name in self.dependency_order():
            binder = binders_by_name[file_name]
            self.namespace_scopes[binder.source_file.file_name] = binder.namespace_scopes
            if not binder.is_external_module:
                for symbol in binder.module.locals.values():
                    merge_symbol_into(self.globals.locals, symbol)
            for symbol in binder.global_declarations.locals.values():
                merge_symbol_into(self.globals.locals, symbol)
            for name, modules in binder.ambient_modules.items():
                for module in modules:
                    existing = self.ambient_modules.setdefault(name, module)
                    if existing is not module:
                        existing.locals.update(module.locals)
                        existing.exports.update(module.exports)
                        existing.declarations.extend(module.declarations)
        self.globals.exports = self.globals.locals

    def get_source_files(self):
        return [self._files[name] for name in self.dependency_order()]

    def dependency_order(self):
        """File names with imported files ahead of their importers.

        Files in an import cycle are grouped together in name order.
        """
        condensed = nx.condensation(self.import_graph)
        members = nx.get_node_attributes(condensed, "members")
        ordered = nx.lexicographical_topological_sort(condensed, key=lambda c: min(members[c]))
        order = []
        for component in reversed(list(ordered)):
            order.extend(sorted(members[component]))
        return order

    def get_source_file(self, file_name):
        return self._files.get(os.path.abspath(file_name))

    def get_root_file_names(self):
        return list(self.root_names)

    def get_module_symbol(self, specifier, containing_file):
        """Module symbol for an import specifier, or None when it does not resolve."""
        resolved = self._resolved_modules.get((containing_file, specifier))
        if resolved is None and (containing_file, specifier) not in self._resolved_modules:
            resolved = self.resolver.resolve(specifier, containing_file)
        if resolved is not None:
            source_file = self._files.get(os.path.abspath(resolved))
            if source_file is not None:
                return source_file.symbol
        return self.ambient_modules.get(specifier)

    def get_dependencies(self, file_name):
        file_name = os.path.abspath(file_name)
        if file_name not in self.import_graph:
            return set()
        return nx.descendants(self.import_graph, file_name)

    def get_type_checker(self):
        if self._checker is None:
            self._checker = TypeChecker(self)
        return self._checker


def create_program(root_dir: str, tsconfig_path: str, component_files=()):
    """Builds a program from a tsconfig plus component files the config may not include."""
    config = load_tsconfig(tsconfig_path, root_dir)
    all_files = sorted(set(config.file_names) | {os.path.abspath(f) for f in component_files})
    return Program(all_files, config)
