import os
import json
import textwrap

import pytest

from proptraverse.extractors.props_extractor import PropsGenerator
from proptraverse.program.program import create_program

REACT_TYPES = """
declare namespace React {
    type ReactNode = ReactElement | string | number | boolean | null | undefined;

    interface ReactElement<P = any> {
        type: any;
        props: P;
        key: string | null;
    }

    interface CSSProperties {
        color?: string;
        display?: string;
    }

    interface RefObject<T> {
        readonly current: T | null;
    }

    interface MutableRefObject<T> {
        current: T;
    }

    type RefCallback<T> = (instance: T | null) => void;
    type Ref<T> = RefCallback<T> | RefObject<T> | null;
    type ForwardedRef<T> = ((instance: T | null) => void) | MutableRefObject<T | null> | null;

    interface Attributes {
        key?: string | number | null;
    }

    interface RefAttributes<T> extends Attributes {
        ref?: Ref<T>;
    }

    interface AriaAttributes {
        'aria-label'?: string;
        'aria-hidden'?: boolean;
    }

    interface HTMLAttributes<T> extends AriaAttributes {
        id?: string;
        className?: string;
        style?: CSSProperties;
    }

    type PropsWithoutRef<P> = Omit<P, 'ref'>;

    interface ForwardRefRenderFunction<T, P = {}> {
        (props: P, ref: ForwardedRef<T>): ReactNode;
        displayName?: string;
    }

    interface ForwardRefExoticComponent<P> {
        (props: P): ReactNode;
        displayName?: string;
    }

    function forwardRef<T, P = {}>(
        render: ForwardRefRenderFunction<T, P>
    ): ForwardRefExoticComponent<PropsWithoutRef<P> & RefAttributes<T>>;
}

export = React;
"""

DEFAULT_TSCONFIG = {
    "compilerOptions": {"strict": True, "jsx": "react-jsx"},
    "include": ["src"],
}


def write_files(root, files):
    for rel, content in files.items():
        path = os.path.join(root, rel)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(textwrap.dedent(content).lstrip())
    return root


@pytest.fixture
def make_project(tmp_path):
    def _make(files, tsconfig=None, with_react=True):
        root = str(tmp_path)
        all_files = {"tsconfig.build.json": json.dumps(tsconfig or DEFAULT_TSCONFIG, indent=2)}
        if with_react:
            all_files["node_modules/@types/react/index.d.ts"] = REACT_TYPES
            all_files["node_modules/@types/react/package.json"] = json.dumps(
                {"name": "@types/react", "types": "index.d.ts"}
            )
        all_files.update(files)
        return write_files(root, all_files)
    return _make


@pytest.fixture
def program_for(make_project):
    def _program(files, **kwargs):
        root = make_project(files, **kwargs)
        component_files = [os.path.join(root, rel) for rel in files if rel.endswith((".ts", ".tsx"))]
        return create_program(root, os.path.join(root, "tsconfig.build.json"), component_files), root
    return _program


@pytest.fixture
def generator_for(make_project):
    def _generator(files, **kwargs):
        root = make_project(files, **kwargs)
        component_files = sorted(os.path.join(root, rel) for rel in files if rel.endswith(".tsx"))
        tsconfig = os.path.join(root, "tsconfig.build.json")
        return PropsGenerator.from_config(root, tsconfig, component_files), root
    return _generator
