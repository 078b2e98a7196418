import os
import sys
import argparse

from tqdm import tqdm

from proptraverse.adapters.docs_adapter import DEFAULT_ALLOWED_FRAGMENTS
from proptraverse.extractors.docs_extractor import PropsDocExtractor
from proptraverse.extractors.props_extractor import PropsGenerator
from proptraverse.utils.formatter import DEFAULT_FORMATTER, ExpandedTypeFormatter

DEFAULT_TSCONFIG = "tsconfig.build.json"
DEFAULT_COMPONENTS_DIR = "src/components"
DEFAULT_OUTPUT = "src/storybook/props/generated.json"


def find_component_files(components_dir: str):
    """Every `.tsx` file under `components_dir` except stories and tests."""
    files = []
    if not os.path.isdir(components_dir):
        return files
    for dirpath, dirnames, filenames in os.walk(components_dir):
        for name in filenames:
            if name.endswith(".tsx") and ".stories." not in name and ".test." not in name:
                files.append(os.path.abspath(os.path.join(dirpath, name)))
    return sorted(files)


def _in_root(root_dir, path):
    return path if os.path.isabs(path) else os.path.join(root_dir, path)


def generate_props(
    root_dir,
    tsconfig=DEFAULT_TSCONFIG,
    components_dir=DEFAULT_COMPONENTS_DIR,
    output=DEFAULT_OUTPUT,
    allowed_fragments=DEFAULT_ALLOWED_FRAGMENTS,
    formatter_command=DEFAULT_FORMATTER,
    format_expanded=True,
):
    root_dir = os.path.abspath(root_dir)
    component_files = find_component_files(_in_root(root_dir, components_dir))

    generator = PropsGenerator.from_config(root_dir, _in_root(root_dir, tsconfig), component_files)
    formatter = ExpandedTypeFormatter(formatter_command, cwd=root_dir) if format_expanded else None
    extractor = PropsDocExtractor(generator, allowed_fragments, formatter)

    for file_path in tqdm(component_files, desc="Extracting props"):
        extractor.process_file(file_path)

    output_path = _in_root(root_dir, output)
    extractor.write_to_file(output_path)
    print("\x1b[32mComplete\x1b[0m")
    return extractor.extract_all_components()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Component props documentation tool')
    subparsers = parser.add_subparsers(dest='function', help='Available functions')

    parser_generate = subparsers.add_parser('generate_props', help='Generate the props JSON for every component')
    parser_generate.add_argument('root_dir', help='Project root containing the tsconfig and components')
    parser_generate.add_argument('--tsconfig', default=DEFAULT_TSCONFIG,
                                 help=f'tsconfig path relative to root_dir (default: {DEFAULT_TSCONFIG})')
    parser_generate.add_argument('--components_dir', default=DEFAULT_COMPONENTS_DIR,
                                 help=f'Directory scanned for component files (default: {DEFAULT_COMPONENTS_DIR})')
    parser_generate.add_argument('--output', default=DEFAULT_OUTPUT,
                                 help=f'Output JSON file (default: {DEFAULT_OUTPUT})')
    parser_generate.add_argument('--allow_fragment', action='append', dest='allow_fragments',
                                 help='Path fragment of node_modules declarations whose props are kept (repeatable)')
    parser_generate.add_argument('--formatter', default=DEFAULT_FORMATTER,
                                 help=f'Command used to format expanded types (default: {DEFAULT_FORMATTER})')
    parser_generate.add_argument('--no_format', action='store_true',
                                 help='Do not format expanded types')

    args = parser.parse_args(argv)

    if not args.function:
        parser.print_help()
        return

    try:
        if args.function == 'generate_props':
            generate_props(
                root_dir=args.root_dir,
                tsconfig=args.tsconfig,
                components_dir=args.components_dir,
                output=args.output,
                allowed_fragments=args.allow_fragments or DEFAULT_ALLOWED_FRAGMENTS,
                formatter_command=args.formatter,
                format_expanded=not args.no_format,
            )
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
