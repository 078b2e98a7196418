import os

from proptraverse.adapters.docs_adapter import (
    DEFAULT_ALLOWED_FRAGMENTS, adapt_components, filter_props, make_component_entry,
)
from proptraverse.base.component_extractor import ComponentExtractor


class PropsDocExtractor(ComponentExtractor):
    def __init__(self, generator, allowed_fragments=DEFAULT_ALLOWED_FRAGMENTS, formatter=None):
        self.generator = generator
        self.allowed_fragments = tuple(allowed_fragments)
        self.formatter = formatter
        self.all_components = []

    def process_file(self, file_path: str):
        source_file = self.generator.program.get_source_file(file_path)
        if source_file is None:
            raise OSError(f"Source file is not part of the program: {os.path.abspath(file_path)}")

        entries = []
        for component in self.generator.discover_exported_props_types(source_file):
            props = self.generator.resolve_props_type(component.symbol, source_file)
            props = filter_props(props, self.allowed_fragments)
            ref = self.generator.extract_ref_type(component.symbol, source_file)

            print(f"\x1b[2mProcessing component: {component.name}\x1b[0m")

            if self.formatter is not None:
                self.formatter.format_props(props)
            entries.append(make_component_entry(component.name, props, ref))

        self.all_components.extend(entries)
        return entries

    def extract_all_components(self):
        return adapt_components(self.all_components)
