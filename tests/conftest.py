"""Shared test fixtures and helpers for eagerlint tests.

Provides:
- Tree builders: var(), name(), lit(), prop(), call(), scall(), ... for
  building syntax trees by hand without a parser
- Git helpers: git_init()
- CliRunner fixtures: cli_runner, invoke_cli()
- Project fixtures: php_project, project_factory
- JSON validation helpers: parse_json_output(), assert_json_envelope()
"""

from __future__ import annotations

import json
import os
import subprocess

import pytest
from click.testing import CliRunner

from eagerlint.tree.nodes import NodeKind, make

# ===========================================================================
# Tree builders
# ===========================================================================


def var(n, line=1):
    return make(NodeKind.VARIABLE, line, name=n)


def name(n, line=1, resolved=None):
    return make(NodeKind.NAME, line, name=n, resolved=resolved)


def lit(value, line=1):
    """String literal; ints become integer literals."""
    if isinstance(value, int):
        return make(NodeKind.LITERAL, line, name="integer", text=str(value))
    return make(NodeKind.LITERAL, line, name="string", text=value)


def arg(value, line=1, label=None):
    if isinstance(value, (str, int)):
        value = lit(value, line)
    return make(NodeKind.ARGUMENT, line, name=label, value=value)


def _args(args, line):
    out = []
    for a in args:
        if isinstance(a, (str, int)) or a.kind is not NodeKind.ARGUMENT:
            a = arg(a, line)
        out.append(a)
    return out


def prop(receiver, member, line=1):
    """``$receiver->member``; *receiver* may be a variable name string."""
    if isinstance(receiver, str):
        receiver = var(receiver, line)
    return make(NodeKind.PROPERTY_FETCH, line, name=member, receiver=receiver)


def path(variable, *members, line=1):
    """``$variable->a->b->c``."""
    node = var(variable, line)
    for member in members:
        node = prop(node, member, line)
    return node


def call(receiver, method, *args, line=1):
    """``$receiver->method(args)``; args may be nodes, strings or ints."""
    if isinstance(receiver, str):
        receiver = var(receiver, line)
    return make(NodeKind.METHOD_CALL, line, name=method, receiver=receiver, args=_args(args, line))


def scall(cls, method, *args, line=1, resolved=None):
    """``Cls::method(args)``."""
    return make(
        NodeKind.STATIC_CALL,
        line,
        name=method,
        receiver=name(cls, line, resolved=resolved),
        args=_args(args, line),
    )


def fcall(fn, *args, line=1):
    return make(NodeKind.FUNCTION_CALL, line, name=fn, callee=name(fn, line), args=_args(args, line))


def array(*items, line=1):
    """``[...]``; a ``(key, value)`` tuple makes a keyed item."""
    out = []
    for item in items:
        if isinstance(item, tuple):
            key, value = item
            out.append(make(NodeKind.ARRAY_ITEM, line, key=_coerce(key, line), value=_coerce(value, line)))
        else:
            out.append(make(NodeKind.ARRAY_ITEM, line, value=_coerce(item, line)))
    return make(NodeKind.ARRAY, line, items=out)


def _coerce(value, line):
    if isinstance(value, (str, int)):
        return lit(value, line)
    return value


def assign(target, value, line=1):
    if isinstance(target, str):
        target = var(target, line)
    return make(NodeKind.ASSIGN, line, target=target, value=value)


def binary(left, op, right, line=1):
    return make(NodeKind.BINARY, line, name=op, left=_coerce(left, line), right=_coerce(right, line))


def ternary(condition, then, otherwise, line=1):
    return make(NodeKind.TERNARY, line, condition=condition, then=then, otherwise=otherwise)


def index(receiver, idx, line=1):
    return make(NodeKind.INDEX, line, receiver=receiver, index=_coerce(idx, line))


def param(n, line=1):
    return make(NodeKind.PARAMETER, line, name=n)


def closure(params=(), uses=(), body=(), line=1):
    return make(
        NodeKind.CLOSURE,
        line,
        params=[param(p, line) for p in params],
        uses=[var(u, line) for u in uses],
        body=list(body),
    )


def arrow(params, body, line=1):
    return make(NodeKind.ARROW_FUNCTION, line, params=[param(p, line) for p in params], body=body)


def other(*parts, line=1, kind_name="echo_statement"):
    return make(NodeKind.OTHER, line, name=kind_name, parts=list(parts))


def foreach(iterable, value, *body, key=None, line=1):
    """``foreach ($iterable as [$key =>] $value) { body }``."""
    if isinstance(iterable, str):
        iterable = var(iterable, line)
    if isinstance(value, str):
        value = var(value, line)
    if isinstance(key, str):
        key = var(key, line)
    return make(NodeKind.FOREACH, line, iterable=iterable, key=key, value=value, body=list(body))


def for_loop(init, condition, update, *body, line=1):
    return make(NodeKind.FOR, line, init=list(init), condition=list(condition), update=list(update), body=list(body))


def while_loop(condition, *body, line=1):
    return make(NodeKind.WHILE, line, condition=condition, body=list(body))


def do_while(condition, *body, line=1):
    return make(NodeKind.DO_WHILE, line, body=list(body), condition=condition)


def program(*statements):
    return make(NodeKind.FILE, 1, body=list(statements))


def issue_keys(issues):
    """Unordered ``(kind, variable, subject)`` set for comparing results."""
    return {(i.kind.value, i.variable, i.subject) for i in issues}


# ===========================================================================
# Git helpers
# ===========================================================================


def git_init(path):
    """Initialize a git repo, add all files, and commit."""
    subprocess.run(["git", "init"], cwd=path, capture_output=True)
    subprocess.run(["git", "config", "user.email", "t@t.com"], cwd=path, capture_output=True)
    subprocess.run(["git", "config", "user.name", "Test"], cwd=path, capture_output=True)
    subprocess.run(["git", "add", "."], cwd=path, capture_output=True)
    subprocess.run(["git", "commit", "-m", "init"], cwd=path, capture_output=True)


# ===========================================================================
# CliRunner helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for in-process CLI testing."""
    return CliRunner()


def invoke_cli(runner, args, cwd=None, json_mode=False):
    """Invoke the eagerlint CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["check"])
        cwd: directory to run in
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from eagerlint.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)

    old_cwd = os.getcwd()
    try:
        if cwd:
            os.chdir(str(cwd))
        result = runner.invoke(cli, full_args, catch_exceptions=False)
    finally:
        os.chdir(old_cwd)

    return result


# ===========================================================================
# JSON validation helpers
# ===========================================================================


def parse_json_output(result, command=None, exit_code=0):
    """Parse JSON from a CliRunner result.

    Args:
        result: click.testing.Result from invoke_cli
        command: optional command name for better error messages
        exit_code: expected exit code (5 when issues were found)
    Returns:
        Parsed dict from JSON output
    """
    assert result.exit_code == exit_code, (
        f"Command {command or '?'} exited {result.exit_code}, expected {exit_code}:\n{result.output}"
    )
    try:
        return json.loads(result.output)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.output[:500]}")


def assert_json_envelope(data, command=None):
    """Validate that a parsed JSON dict follows the eagerlint envelope contract."""
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    for key in ("schema", "schema_version", "command", "version", "summary"):
        assert key in data, f"Missing '{key}' key in envelope"
    assert "timestamp" in data.get("_meta", {}), "Missing 'timestamp' in _meta"
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    summary = data["summary"]
    assert isinstance(summary, dict), f"summary should be dict, got {type(summary)}"
    assert "verdict" in summary


# ===========================================================================
# Project fixtures
# ===========================================================================

N_PLUS_ONE_CONTROLLER = """\
<?php

namespace App\\Http\\Controllers;

use App\\Models\\Post;

class PostController
{
    public function index()
    {
        $posts = Post::all();
        foreach ($posts as $post) {
            echo $post->author->name;
        }
    }
}
"""

EAGER_CONTROLLER = """\
<?php

namespace App\\Http\\Controllers;

use App\\Models\\Post;

class FeedController
{
    public function index()
    {
        $posts = Post::with('author')->get();
        foreach ($posts as $post) {
            echo $post->author->name;
        }
    }
}
"""

QUERY_LOOP_SERVICE = """\
<?php

namespace App\\Services;

use App\\Models\\User;

class Report
{
    public function build(array $ids)
    {
        $out = [];
        foreach ($ids as $id) {
            $out[] = User::where('id', $id)->first();
        }
        return $out;
    }
}
"""


def make_files(root, file_dict):
    """Create files under *root* from a {relative_path: content} dict."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in file_dict.items():
        fp = root / rel
        fp.parent.mkdir(parents=True, exist_ok=True)
        fp.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def project_factory(tmp_path):
    """Build a git-initialised PHP project from a {path: source} dict."""
    counter = {"n": 0}

    def _factory(file_dict, git=True):
        counter["n"] += 1
        proj = make_files(tmp_path / f"proj{counter['n']}", file_dict)
        if git:
            git_init(proj)
        return proj

    return _factory


@pytest.fixture
def php_project(project_factory):
    """Small Laravel-shaped project: one N+1, one clean file, one query loop."""
    return project_factory(
        {
            "app/Http/Controllers/PostController.php": N_PLUS_ONE_CONTROLLER,
            "app/Http/Controllers/FeedController.php": EAGER_CONTROLLER,
            "app/Services/Report.php": QUERY_LOOP_SERVICE,
        }
    )
