"""Tests for the line-oriented structural parsers."""

import pytest

from codewhisper.core.types import Language, SymbolKind
from codewhisper.parsers import is_supported, parse_file
from codewhisper.parsers.base import (
    BLOCK_END_FALLBACK_LINES,
    SIGNATURE_MAX_CHARS,
    find_block_end,
)


@pytest.fixture
def typescript_service():
    return """import { Logger } from "./logger";

export class UserService {
  private cache = new Map();

  constructor(private logger: Logger) {
    this.logger.info("created");
  }

  async getUser(id: string): Promise<User> {
    if (this.cache.has(id)) {
      return this.cache.get(id);
    }
    for (const x of []) {}
    return fetchUser(id);
  }
}

export interface User {
  id: string;
}

export type UserId = string;

export const loadUsers = async (ids: string[]) => {
  return ids.map((id) => id);
};"""


@pytest.fixture
def python_module():
    return '''import os, sys as system
from pathlib import Path

MAX_RETRIES = 3
_private_flag = True

class Greeter:
    """Says hello."""

    def __init__(self, name):
        self.name = name

    def greet(self):
        def inner():
            return self.name
        return f"hi {inner()}"


async def main() -> None:
    print(Greeter("x").greet())

def _helper():
    pass'''


@pytest.fixture
def go_server():
    return """package server

import (
\t"fmt"
\tlog "github.com/sirupsen/logrus"
)

type Server struct {
\taddr string
}

type Handler interface {
\tServe() error
}

type Port int

func (s *Server) Start() error {
\tfmt.Println(s.addr)
\treturn nil
}

func helper() {}"""


@pytest.fixture
def rust_config():
    return """use std::collections::HashMap;

#[derive(Debug)]
pub struct Config {
    name: String,
}

pub enum Mode { Fast, Slow }

pub trait Runner {
    fn run(&self);
}

type Result<T> = std::result::Result<T, String>;

impl Config {
    pub fn new(name: &str) -> Self {
        Config { name: name.to_string() }
    }
}

fn main() {
    let _ = Config::new("x");
}"""


def _by_name(parsed):
    return {s.name: s for s in parsed.symbols}


def test_single_exported_function():
    parsed = parse_file("a.ts", "import { x } from './b'\nexport function foo() { return 1 }")

    assert parsed.language == Language.TYPESCRIPT
    assert parsed.imports == ["./b"]
    assert parsed.exports == ["foo"]
    assert len(parsed.symbols) == 1
    foo = parsed.symbols[0]
    assert foo.name == "foo"
    assert foo.kind == SymbolKind.FUNCTION
    assert (foo.line_start, foo.line_end) == (2, 2)
    assert foo.signature == "export function foo()"


def test_typescript_declarations(typescript_service):
    parsed = parse_file("src/user.ts", typescript_service)
    symbols = _by_name(parsed)

    assert parsed.imports == ["./logger"]
    assert parsed.exports == ["UserService", "User", "UserId", "loadUsers"]

    assert symbols["UserService"].kind == SymbolKind.CLASS
    assert (symbols["UserService"].line_start, symbols["UserService"].line_end) == (3, 17)
    assert symbols["User"].kind == SymbolKind.INTERFACE
    assert symbols["User"].line_end == 21
    assert symbols["UserId"].kind == SymbolKind.TYPE
    assert symbols["loadUsers"].kind == SymbolKind.FUNCTION
    assert (symbols["loadUsers"].line_start, symbols["loadUsers"].line_end) == (25, 27)


def test_typescript_methods_have_parent(typescript_service):
    parsed = parse_file("src/user.ts", typescript_service)
    methods = [s for s in parsed.symbols if s.kind == SymbolKind.METHOD]

    assert [m.name for m in methods] == ["constructor", "getUser"]
    assert all(m.parent == "UserService" for m in methods)
    assert (methods[1].line_start, methods[1].line_end) == (10, 16)
    assert [s.name for s in parsed.children_of("UserService")] == ["constructor", "getUser"]
    assert "getUser" not in parsed.symbol_index()


def test_typescript_control_flow_is_not_a_method(typescript_service):
    parsed = parse_file("src/user.ts", typescript_service)
    names = {s.name for s in parsed.symbols}

    assert not names & {"if", "for", "return", "while", "cache"}


def test_javascript_require_and_export_list():
    content = """const express = require('express');
import 'polyfill';
function start() {
  return express();
}
export { start, start as run };
export * from './routes';"""
    parsed = parse_file("server.js", content)

    assert parsed.language == Language.JAVASCRIPT
    assert parsed.imports == ["express", "polyfill"]
    assert parsed.exports == ["start", "run", "./routes"]
    assert [s.name for s in parsed.symbols] == ["start"]


def test_python_declarations(python_module):
    parsed = parse_file("app/greeter.py", python_module)
    symbols = _by_name(parsed)

    assert parsed.imports == ["os", "sys", "pathlib"]
    assert parsed.exports == ["MAX_RETRIES", "Greeter", "main"]
    assert symbols["MAX_RETRIES"].kind == SymbolKind.VARIABLE
    assert "_private_flag" not in symbols
    assert symbols["Greeter"].kind == SymbolKind.CLASS
    assert (symbols["Greeter"].line_start, symbols["Greeter"].line_end) == (7, 16)
    assert symbols["main"].signature == "async def main() -> None"
    assert symbols["_helper"].kind == SymbolKind.FUNCTION


def test_python_methods_skip_nested_functions(python_module):
    parsed = parse_file("app/greeter.py", python_module)
    methods = [s for s in parsed.symbols if s.kind == SymbolKind.METHOD]

    assert [m.name for m in methods] == ["__init__", "greet"]
    assert all(m.parent == "Greeter" for m in methods)
    assert (methods[0].line_start, methods[0].line_end) == (10, 11)
    assert (methods[1].line_start, methods[1].line_end) == (13, 16)
    assert "inner" not in {s.name for s in parsed.symbols}


def test_python_nested_class_does_not_hide_methods():
    content = """class Model:
    class Meta:
        def inner(self):
            pass

    def save(self):
        pass
"""
    parsed = parse_file("models.py", content)
    methods = [s for s in parsed.symbols if s.kind == SymbolKind.METHOD]

    assert [m.name for m in methods] == ["save"]
    assert methods[0].parent == "Model"
    assert (methods[0].line_start, methods[0].line_end) == (6, 7)


def test_go_declarations(go_server):
    parsed = parse_file("server/server.go", go_server)
    symbols = _by_name(parsed)

    assert parsed.imports == ["fmt", "github.com/sirupsen/logrus"]
    assert symbols["Server"].kind == SymbolKind.CLASS
    assert (symbols["Server"].line_start, symbols["Server"].line_end) == (8, 10)
    assert symbols["Handler"].kind == SymbolKind.INTERFACE
    assert symbols["Port"].kind == SymbolKind.TYPE
    assert symbols["Port"].line_end == 16
    assert symbols["Start"].kind == SymbolKind.FUNCTION
    assert (symbols["Start"].line_start, symbols["Start"].line_end) == (18, 21)
    assert parsed.exports == ["Server", "Handler", "Port", "Start"]


def test_rust_declarations(rust_config):
    parsed = parse_file("src/main.rs", rust_config)
    symbols = _by_name(parsed)

    assert parsed.imports == ["std::collections::HashMap"]
    assert symbols["Config"].kind == SymbolKind.CLASS
    assert (symbols["Config"].line_start, symbols["Config"].line_end) == (4, 6)
    assert symbols["Mode"].kind == SymbolKind.TYPE
    assert symbols["Runner"].kind == SymbolKind.INTERFACE
    assert symbols["Result"].line_end == 14
    assert "run" not in symbols
    assert symbols["new"].kind == SymbolKind.FUNCTION
    assert symbols["new"].parent is None
    assert (symbols["new"].line_start, symbols["new"].line_end) == (17, 19)
    assert symbols["main"].line_end == 24
    assert parsed.exports == ["Config", "Mode", "Runner", "new"]


def test_unknown_extension_is_not_parsed():
    assert parse_file("README.md", "# Title\n\nfunction foo() {}") is None
    assert parse_file("Makefile", "all:\n\techo hi") is None
    assert not is_supported("notes.txt")
    assert is_supported("component.tsx")


def test_unbalanced_braces_do_not_raise():
    content = "export function broken() {\n" + "\n".join("  x++;" for _ in range(60))
    parsed = parse_file("broken.ts", content)

    assert [s.name for s in parsed.symbols] == ["broken"]
    assert parsed.symbols[0].line_end == BLOCK_END_FALLBACK_LINES


def test_garbage_input_returns_empty_result():
    parsed = parse_file("noise.py", "}}}{{{ )))(((\n\t\t\x00\nclass\n    def")

    assert parsed is not None
    assert parsed.language == Language.PYTHON


def test_long_signature_is_truncated():
    params = ", ".join(f"argument{i}: number" for i in range(10))
    parsed = parse_file("long.ts", f"function wide({params}) {{\n  return 0;\n}}")

    signature = parsed.symbols[0].signature
    assert len(signature) == SIGNATURE_MAX_CHARS + 3
    assert signature.endswith("...")


def test_declaration_without_body_ends_on_its_line():
    lines = ["export function declared(a: number): void;", "const other = 1;"]

    assert find_block_end(lines, 0) == 1


def test_language_from_extension():
    assert Language.from_file_extension("a/b/c.TS") == Language.TYPESCRIPT
    assert Language.from_file_extension("lib.rs") == Language.RUST
    assert Language.from_file_extension("no_extension") == Language.UNKNOWN
    assert ".go" in Language.get_all_extensions()


def test_multiline_import_is_recorded():
    content = """import {
  useState,
  useEffect,
} from 'react';
import './styles.css';

export function App() {
  return null;
}"""
    parsed = parse_file("app.tsx", content)

    assert parsed.imports == ["react", "./styles.css"]
    assert [s.name for s in parsed.symbols] == ["App"]
