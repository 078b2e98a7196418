import os
import json

import pytest

from proptraverse.program.tsconfig import ConfigError, load_tsconfig, strip_json_comments
from conftest import write_files


def test_strip_json_comments_keeps_globs_and_strings():
    text = """
    {
        // line comment
        "include": ["src/**/*", "types/*.d.ts"], /* block */
        "compilerOptions": {"baseUrl": "http://example//x",},
    }
    """
    data = json.loads(strip_json_comments(text))
    assert data["include"] == ["src/**/*", "types/*.d.ts"]
    assert data["compilerOptions"]["baseUrl"] == "http://example//x"


def test_include_and_exclude_select_files(tmp_path):
    root = write_files(str(tmp_path), {
        "tsconfig.json": '{"include": ["src"], "exclude": ["src/**/*.test.ts"]}',
        "src/a.ts": "export const a = 1;",
        "src/nested/b.tsx": "export const b = 2;",
        "src/a.test.ts": "export const t = 1;",
        "other/c.ts": "export const c = 3;",
        "src/readme.md": "# not typescript",
    })
    config = load_tsconfig(os.path.join(root, "tsconfig.json"))
    names = sorted(os.path.relpath(f, root).replace("\\", "/") for f in config.file_names)
    assert names == ["src/a.ts", "src/nested/b.tsx"]


def test_default_include_skips_node_modules(tmp_path):
    root = write_files(str(tmp_path), {
        "tsconfig.json": "{}",
        "index.ts": "export {};",
        "node_modules/pkg/index.d.ts": "export {};",
    })
    config = load_tsconfig(os.path.join(root, "tsconfig.json"))
    assert config.file_names == [os.path.join(root, "index.ts")]


def test_extends_merges_options_and_inherits_include(tmp_path):
    root = write_files(str(tmp_path), {
        "configs/base.json": json.dumps({
            "compilerOptions": {"strict": True, "baseUrl": ".."},
            "include": ["../src"],
        }),
        "tsconfig.build.json": json.dumps({
            "extends": "./configs/base.json",
            "compilerOptions": {"strict": False, "paths": {"@/*": ["src/*"]}},
        }),
        "src/a.ts": "export {};",
        "lib/b.ts": "export {};",
    })
    config = load_tsconfig(os.path.join(root, "tsconfig.build.json"))
    assert config.options["strict"] is False
    assert config.base_url == os.path.normpath(root)
    assert config.paths == {"@/*": ["src/*"]}
    assert config.file_names == [os.path.join(root, "src", "a.ts")]


def test_files_list_is_used_verbatim(tmp_path):
    root = write_files(str(tmp_path), {
        "tsconfig.json": '{"files": ["main.ts"]}',
        "main.ts": "export {};",
        "extra.ts": "export {};",
    })
    config = load_tsconfig(os.path.join(root, "tsconfig.json"))
    assert config.file_names == [os.path.join(root, "main.ts")]


def test_all_option_errors_are_reported_together(tmp_path):
    root = write_files(str(tmp_path), {
        "tsconfig.json": json.dumps({
            "compilerOptions": {"strict": "yes", "baseUrl": 3},
            "include": "src",
        }),
    })
    with pytest.raises(ConfigError) as excinfo:
        load_tsconfig(os.path.join(root, "tsconfig.json"))
    message = str(excinfo.value)
    assert message.startswith("Failed to parse tsconfig: ")
    assert "'strict' requires a value of type boolean" in message
    assert "'baseUrl' requires a value of type string" in message
    assert "'include' must be an array of strings" in message


def test_unreadable_config_is_fatal(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read file"):
        load_tsconfig(os.path.join(str(tmp_path), "missing.json"))


def test_malformed_json_is_fatal(tmp_path):
    root = write_files(str(tmp_path), {"tsconfig.json": '{"include": [}'})
    with pytest.raises(ConfigError, match="Failed to parse"):
        load_tsconfig(os.path.join(root, "tsconfig.json"))


def test_missing_extends_target(tmp_path):
    root = write_files(str(tmp_path), {
        "tsconfig.json": '{"extends": "./nope.json"}',
        "a.ts": "export {};",
    })
    with pytest.raises(ConfigError, match="specified in 'extends'"):
        load_tsconfig(os.path.join(root, "tsconfig.json"))


def test_no_inputs(tmp_path):
    root = write_files(str(tmp_path), {"tsconfig.json": '{"include": ["src"]}'})
    with pytest.raises(ConfigError, match="No inputs were found"):
        load_tsconfig(os.path.join(root, "tsconfig.json"))
