"""
Summary: Bundled transformer rewriting module-dialect statements into plain Python.
Why: Give the loader a working default so dialect files run without a third-party compiler.
"""

# Dialect accepted at module level:
#   export default EXPR                  -> default = EXPR
#   export default def f / class C       -> def f / class C, footer binds default
#   export def f / async def f / class C -> plain statement, name added to __all__
#   export NAME = ... / NAME: T = ...    -> plain statement, name added to __all__
#   export {a, b as c}                   -> c = b, names added to __all__
#   import d from "spec"                 -> d = __jit_default__(<load>)
#   import * as ns from "spec"           -> ns = <load>
#   import {a, b as c} from "spec"       -> named bindings through __jit_pick__
#   import d, {a} from "spec"            -> default plus named bindings
#   from "spec" import a, b as c / *     -> named bindings / __jit_star__
# <load> is require("spec") for sync output and (await __jit_import__("spec")) for async output.

from __future__ import annotations

import ast
import io
import json
import tokenize
from dataclasses import dataclass, field
from tokenize import TokenInfo

from jitmod.platform.logging import logger
from jitmod.shared.models import (
    HELPER_PREFIX_KEY,
    SOURCE_ROOT_KEY,
    TransformOptions,
    TransformResult,
)

_DEFAULT_HELPER_PREFIX = "__jit"
_SKIPPED_TOKENS = frozenset({tokenize.COMMENT, tokenize.NL, tokenize.ENCODING})


class DialectSyntaxError(Exception):
    """A dialect statement the rewriter cannot translate."""

    def __init__(self, message: str, line: int) -> None:
        self.line = line
        super().__init__(f"{message} (line {line})")


@dataclass(slots=True)
class _LogicalLine:
    tokens: list[TokenInfo]
    depth: int

    @property
    def first(self) -> TokenInfo:
        return self.tokens[0]

    @property
    def last(self) -> TokenInfo:
        return self.tokens[-1]


@dataclass(slots=True)
class _Edit:
    start: int
    end: int
    replacement: str
    start_line: int
    end_line: int


@dataclass(slots=True)
class _ImportClause:
    specifier: str
    default: str | None = None
    namespace: str | None = None
    star: bool = False
    names: list[tuple[str, str]] = field(default_factory=list)


def _logical_lines(source: str) -> list[_LogicalLine]:
    lines: list[_LogicalLine] = []
    current: list[TokenInfo] = []
    depth = 0
    line_depth = 0
    for token in tokenize.generate_tokens(io.StringIO(source).readline):
        if token.type == tokenize.INDENT:
            depth += 1
            continue
        if token.type == tokenize.DEDENT:
            depth -= 1
            continue
        if token.type in _SKIPPED_TOKENS:
            continue
        if token.type in (tokenize.NEWLINE, tokenize.ENDMARKER):
            if current:
                lines.append(_LogicalLine(current, line_depth))
                current = []
            continue
        if not current:
            line_depth = depth
        current.append(token)
    return lines


def _is_dialect_export(line: _LogicalLine) -> bool:
    tokens = line.tokens
    if tokens[0].type != tokenize.NAME or tokens[0].string != "export" or len(tokens) < 2:
        return False
    second = tokens[1]
    return second.type == tokenize.NAME or (second.type == tokenize.OP and second.string == "{")


def _is_dialect_import(line: _LogicalLine) -> bool:
    tokens = line.tokens
    first = tokens[0]
    if first.type != tokenize.NAME or len(tokens) < 2:
        return False
    if first.string == "from":
        return tokens[1].type == tokenize.STRING
    if first.string == "import":
        return (
            len(tokens) >= 4
            and tokens[-1].type == tokenize.STRING
            and tokens[-2].type == tokenize.NAME
            and tokens[-2].string == "from"
        )
    return False


def _string_value(token: TokenInfo) -> str:
    try:
        value = ast.literal_eval(token.string)
    except (ValueError, SyntaxError):
        value = None
    if not isinstance(value, str) or not value:
        raise DialectSyntaxError("Module specifier must be a non-empty string literal", token.start[0])
    return value


class _TokenCursor:
    """Sequential reader over the tokens of one logical line."""

    def __init__(self, tokens: list[TokenInfo], index: int = 0) -> None:
        self._tokens = tokens
        self._index = index

    @property
    def line(self) -> int:
        token = self.peek() or self._tokens[-1]
        return token.start[0]

    def peek(self) -> TokenInfo | None:
        return self._tokens[self._index] if self._index < len(self._tokens) else None

    def at_end(self) -> bool:
        return self._index >= len(self._tokens)

    def take(self) -> TokenInfo:
        token = self.peek()
        if token is None:
            raise DialectSyntaxError("Unexpected end of statement", self._tokens[-1].end[0])
        self._index += 1
        return token

    def accept(self, string: str) -> bool:
        token = self.peek()
        if token is not None and token.string == string:
            self._index += 1
            return True
        return False

    def expect(self, string: str) -> TokenInfo:
        token = self.take()
        if token.string != string:
            raise DialectSyntaxError(f"Expected '{string}' but found '{token.string}'", token.start[0])
        return token

    def name(self) -> str:
        token = self.take()
        if token.type != tokenize.NAME or not token.string.isidentifier():
            raise DialectSyntaxError(f"Expected a name but found '{token.string}'", token.start[0])
        return token.string

    def name_list(self, closing: str | None) -> list[tuple[str, str]]:
        """Parse ``a, b as c`` until ``closing`` (or the end of the line)."""

        names: list[tuple[str, str]] = []
        while True:
            if closing is not None and self.accept(closing):
                break
            if closing is None and self.at_end():
                break
            imported = self.name()
            local = self.name() if self.accept("as") else imported
            names.append((imported, local))
            if not self.accept(","):
                if closing is not None:
                    _ = self.expect(closing)
                break
        if not names:
            raise DialectSyntaxError("Expected at least one name", self.line)
        return names


class _DialectRewriter:
    def __init__(self, options: TransformOptions) -> None:
        self._options = options
        self._source = options.source
        prefix = options.extra.get(HELPER_PREFIX_KEY) or _DEFAULT_HELPER_PREFIX
        self._prefix = str(prefix)
        self._line_starts = self._compute_line_starts(options.source)
        self._edits: list[_Edit] = []
        self._exported: list[str] = []
        self._default_bindings: list[str] = []
        self._temp_counter = 0

    @staticmethod
    def _compute_line_starts(source: str) -> list[int]:
        starts = [0]
        for line in io.StringIO(source).readlines():
            starts.append(starts[-1] + len(line))
        return starts

    def _offset(self, position: tuple[int, int]) -> int:
        row, col = position
        return self._line_starts[row - 1] + col

    def rewrite(self) -> tuple[str, list[int]]:
        for line in _logical_lines(self._source):
            if _is_dialect_export(line):
                self._require_module_level(line, "export")
                self._rewrite_export(line)
            elif _is_dialect_import(line):
                self._require_module_level(line, "import")
                self._rewrite_import(line)

        body, line_map = self._apply_edits()
        footer = self._footer()
        if not footer:
            return body, line_map
        if body and not body.endswith("\n"):
            body += "\n"
        last_line = line_map[-1] if line_map else 1
        return body + "".join(f"{statement}\n" for statement in footer), [
            *line_map,
            *([last_line] * len(footer)),
        ]

    def _require_module_level(self, line: _LogicalLine, keyword: str) -> None:
        if line.depth > 0:
            raise DialectSyntaxError(
                f"'{keyword}' module statements are only allowed at module level",
                line.first.start[0],
            )

    def _export(self, name: str) -> None:
        if name not in self._exported:
            self._exported.append(name)

    def _replace(self, start: TokenInfo, end_position: tuple[int, int], replacement: str) -> None:
        self._edits.append(
            _Edit(
                start=self._offset(start.start),
                end=self._offset(end_position),
                replacement=replacement,
                start_line=start.start[0],
                end_line=end_position[0],
            )
        )

    def _rewrite_export(self, line: _LogicalLine) -> None:
        tokens = line.tokens
        keyword = tokens[0]
        cursor = _TokenCursor(tokens, 1)
        head = cursor.take()

        if head.string == "default":
            target = cursor.peek()
            if target is None:
                raise DialectSyntaxError("'export default' needs a value", head.start[0])
            defined = self._definition_name(tokens, 2)
            if defined is not None:
                self._replace(keyword, target.start, "")
                self._default_bindings.append(defined)
            else:
                self._replace(keyword, target.start, "default = ")
            self._export("default")
            return

        if head.string == "{":
            names = cursor.name_list("}")
            if not cursor.at_end():
                raise DialectSyntaxError("Unexpected tokens after export list", cursor.line)
            assignments = [f"{local} = {imported}" for imported, local in names if local != imported]
            self._replace(keyword, line.last.end, self._join(assignments or ["pass"], line))
            for _, local in names:
                self._export(local)
            return

        defined = self._definition_name(tokens, 1)
        if defined is not None:
            self._replace(keyword, head.start, "")
            self._export(defined)
            return

        following = cursor.peek()
        if (
            head.type == tokenize.NAME
            and head.string.isidentifier()
            and following is not None
            and following.string in {"=", ":"}
        ):
            self._replace(keyword, head.start, "")
            self._export(head.string)
            return

        raise DialectSyntaxError(f"Unsupported export form 'export {head.string}'", keyword.start[0])

    @staticmethod
    def _definition_name(tokens: list[TokenInfo], index: int) -> str | None:
        if index < len(tokens) and tokens[index].string == "async":
            index += 1
            if index >= len(tokens) or tokens[index].string != "def":
                return None
        if index + 1 < len(tokens) and tokens[index].string in {"def", "class"}:
            name = tokens[index + 1]
            if name.type == tokenize.NAME:
                return name.string
        return None

    def _rewrite_import(self, line: _LogicalLine) -> None:
        clause = self._parse_import(line)
        load = self._load_expression(clause.specifier)

        statements: list[str] = []
        only_default = clause.default is not None and not (clause.namespace or clause.star or clause.names)
        only_namespace = clause.namespace is not None and not (clause.default or clause.star or clause.names)
        if only_default:
            statements.append(f"{clause.default} = __jit_default__({load})")
        elif only_namespace:
            statements.append(f"{clause.namespace} = {load}")
        else:
            temp = f"{self._prefix}_m{self._temp_counter}"
            self._temp_counter += 1
            statements.append(f"{temp} = {load}")
            if clause.default is not None:
                statements.append(f"{clause.default} = __jit_default__({temp})")
            if clause.namespace is not None:
                statements.append(f"{clause.namespace} = {temp}")
            for imported, local in clause.names:
                statements.append(f"{local} = __jit_pick__({temp}, {imported!r})")
            if clause.star:
                statements.append(f"__jit_star__({temp}, globals())")
            statements.append(f"del {temp}")

        self._replace(line.first, line.last.end, self._join(statements, line))

    def _parse_import(self, line: _LogicalLine) -> _ImportClause:
        tokens = line.tokens
        if tokens[0].string == "from":
            clause = _ImportClause(specifier=_string_value(tokens[1]))
            cursor = _TokenCursor(tokens, 2)
            _ = cursor.expect("import")
            if cursor.accept("*"):
                clause.star = True
            elif cursor.accept("("):
                clause.names = cursor.name_list(")")
            else:
                clause.names = cursor.name_list(None)
            if not cursor.at_end():
                raise DialectSyntaxError("Unexpected tokens after import list", cursor.line)
            return clause

        clause = _ImportClause(specifier=_string_value(tokens[-1]))
        cursor = _TokenCursor(tokens[:-2], 1)
        while not cursor.at_end():
            if cursor.accept("*"):
                _ = cursor.expect("as")
                clause.namespace = cursor.name()
            elif cursor.accept("{"):
                clause.names.extend(cursor.name_list("}"))
            else:
                if clause.default is not None:
                    raise DialectSyntaxError("Only one default import is allowed", cursor.line)
                clause.default = cursor.name()
            if not cursor.accept(","):
                break
        if not cursor.at_end():
            raise DialectSyntaxError("Unexpected tokens in import clause", cursor.line)
        return clause

    def _load_expression(self, specifier: str) -> str:
        if self._options.is_async:
            return f"(await __jit_import__({specifier!r}))"
        return f"require({specifier!r})"

    def _join(self, statements: list[str], line: _LogicalLine) -> str:
        spanned = line.last.end[0] - line.first.start[0]
        if self._options.retain_lines:
            return "; ".join(statements) + "\n" * spanned
        return "\n".join(statements) + "\n" * max(spanned - len(statements) + 1, 0)

    def _footer(self) -> list[str]:
        footer = [f"default = {name}" for name in self._default_bindings]
        if self._exported:
            names = ", ".join(repr(name) for name in self._exported)
            footer.append(f"__all__ = list(dict.fromkeys([*globals().get('__all__', ()), {names}]))")
        return footer

    def _apply_edits(self) -> tuple[str, list[int]]:
        """Apply edits in order and map every output line to its original line."""

        parts: list[str] = []
        line_map: list[int] = []
        position = 0
        original_line = 1
        output_line_origin = 1

        def copy_through(text: str) -> None:
            nonlocal original_line, output_line_origin
            for char in text:
                if char == "\n":
                    line_map.append(output_line_origin)
                    original_line += 1
                    output_line_origin = original_line
            parts.append(text)

        for edit in sorted(self._edits, key=lambda item: item.start):
            copy_through(self._source[position : edit.start])
            for char in edit.replacement:
                if char == "\n":
                    line_map.append(output_line_origin)
                    output_line_origin = min(output_line_origin + 1, edit.end_line)
            parts.append(edit.replacement)
            original_line = edit.end_line
            position = edit.end

        copy_through(self._source[position:])
        code = "".join(parts)
        if code and not code.endswith("\n"):
            line_map.append(output_line_origin)
        return code, line_map


def _render_source_map(options: TransformOptions, line_map: list[int]) -> str:
    source_root = options.extra.get(SOURCE_ROOT_KEY)
    return json.dumps(
        {
            "version": 1,
            "file": options.filename,
            "sourceRoot": str(source_root) if source_root is not None else "",
            "lines": line_map,
        },
        sort_keys=True,
        separators=(",", ":"),
    )


def _describe_syntax_error(exc: SyntaxError, filename: str) -> str:
    location = f"line {exc.lineno}" if exc.lineno else "unknown line"
    return f"{exc.msg} ({filename}, {location})"


def esm_transform(options: TransformOptions) -> TransformResult:
    """Rewrite module-dialect statements in ``options.source``.

    Failures are reported through ``TransformResult.error`` rather than raised,
    matching the transformer contract the pipeline expects.
    """
    ignored = options.extra.unknown_keys()
    if ignored:
        logger.debug("Ignoring transform extras %s for %s", ", ".join(ignored), options.filename)

    try:
        code, line_map = _DialectRewriter(options).rewrite()
    except DialectSyntaxError as exc:
        return TransformResult(code="", error=f"{exc} in {options.filename}")
    except SyntaxError as exc:
        return TransformResult(code="", error=_describe_syntax_error(exc, options.filename))
    except tokenize.TokenError as exc:
        message, position = exc.args
        return TransformResult(code="", error=f"{message} ({options.filename}, line {position[0]})")

    try:
        _ = compile(
            code,
            options.filename,
            "exec",
            flags=ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT,
            dont_inherit=True,
        )
    except SyntaxError as exc:
        return TransformResult(code="", error=_describe_syntax_error(exc, options.filename))

    source_map = _render_source_map(options, line_map) if options.source_maps else None
    return TransformResult(code=code, source_map=source_map)


__all__ = ["DialectSyntaxError", "esm_transform"]
