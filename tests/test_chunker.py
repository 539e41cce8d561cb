"""Tests for chunk extraction from parsed files."""

from codewhisper.chunker import MODULE_CHUNK_MAX_CHARS, chunk_file
from codewhisper.core.types import ChunkKind
from codewhisper.parsers import parse_file


def _chunks(path, content):
    return chunk_file(parse_file(path, content), content)


def test_function_chunk_id_is_path_and_symbol():
    content = "export function foo() { return 1 }"
    chunks = _chunks("a.ts", content)

    assert len(chunks) == 1
    chunk = chunks[0]
    assert chunk.id == "a.ts::foo"
    assert chunk.kind == ChunkKind.FUNCTION
    assert chunk.symbol_name == "foo"
    assert chunk.content == content
    assert chunk.context == "export function foo()"
    assert (chunk.line_start, chunk.line_end) == (1, 1)


def test_chunk_ids_are_stable_across_runs():
    first = _chunks("src/a.ts", "export function foo() {\n  return 1\n}")
    second = _chunks("src/a.ts", "\n\nexport function foo() {\n  return 2\n}")

    assert [c.id for c in first] == [c.id for c in second] == ["src/a.ts::foo"]
    assert second[0].line_start == 3


def test_imports_chunk_collects_import_lines():
    content = """import { a } from './a';
const fs = require('fs');
import b from './b';

export function run() {
  return a + b;
}"""
    chunks = _chunks("main.ts", content)

    imports = chunks[0]
    assert imports.id == "main.ts::imports"
    assert imports.kind == ChunkKind.IMPORTS
    assert imports.symbol_name is None
    assert imports.content.splitlines() == [
        "import { a } from './a';",
        "const fs = require('fs');",
        "import b from './b';",
    ]
    assert (imports.line_start, imports.line_end) == (1, 3)
    assert imports.context == "imports from main.ts"
    assert [c.id for c in chunks[1:]] == ["main.ts::run"]


def test_go_import_block_is_one_chunk():
    content = 'package main\n\nimport (\n\t"fmt"\n\t"os"\n)\n\nfunc main() {\n\tfmt.Println(os.Args)\n}'
    chunks = _chunks("main.go", content)

    assert chunks[0].id == "main.go::imports"
    assert chunks[0].content == 'import (\n\t"fmt"\n\t"os"\n)'
    assert chunks[1].id == "main.go::main"


def test_class_chunk_context_lists_methods():
    content = """export class Cart {
  add(item) {
    this.items.push(item);
  }

  total() {
    return this.items.length;
  }
}"""
    chunks = _chunks("cart.js", content)

    assert len(chunks) == 1
    assert chunks[0].id == "cart.js::Cart"
    assert chunks[0].kind == ChunkKind.CLASS
    assert chunks[0].context == "class Cart { add, total }"
    assert chunks[0].line_end == 9


def test_methods_are_not_chunked_separately():
    content = """class Store:
    def get(self):
        return 10
"""
    chunks = _chunks("store.py", content)

    assert [c.id for c in chunks] == ["store.py::Store"]


def test_top_level_variables_get_their_own_chunk():
    content = """export const config = {
  retries: 3,
};

export function load() {
  return config;
}"""
    chunks = _chunks("config.ts", content)

    assert [c.id for c in chunks] == ["config.ts::config", "config.ts::load"]
    assert chunks[0].kind == ChunkKind.FUNCTION
    assert chunks[0].context == "export const config"


def test_duplicate_names_produce_one_chunk():
    content = "function init() {\n  return 1;\n}\nfunction init() {\n  return 2;\n}"
    chunks = _chunks("legacy.js", content)

    assert [c.id for c in chunks] == ["legacy.js::init"]
    assert "return 1" in chunks[0].content


def test_module_chunk_when_nothing_else_found():
    content = 'console.log("booting");\n' * 400
    chunks = _chunks("boot.js", content)

    assert len(chunks) == 1
    module = chunks[0]
    assert module.id == "boot.js::module"
    assert module.kind == ChunkKind.MODULE
    assert module.context == "boot.js"
    assert len(module.content) == MODULE_CHUNK_MAX_CHARS
    assert module.line_start == 1


def test_empty_file_has_no_chunks():
    assert _chunks("empty.ts", "") == []
    assert _chunks("blank.py", "\n\n   \n") == []


def test_embedding_text_is_truncated():
    chunk = _chunks("a.ts", "export function foo() { return 1 }")[0]

    text = chunk.embedding_text(10)
    assert text == "export fun"
    assert chunk.embedding_text(1000).startswith("export function foo()\n\n")


def test_multiline_import_is_one_block_in_the_imports_chunk():
    content = """import {
  a,
  b,
} from './ab';

export function run() {
  return a + b;
}"""
    chunks = _chunks("main.ts", content)

    assert chunks[0].id == "main.ts::imports"
    assert chunks[0].content == "import {\n  a,\n  b,\n} from './ab';"
    assert (chunks[0].line_start, chunks[0].line_end) == (1, 4)
    assert chunks[1].id == "main.ts::run"
