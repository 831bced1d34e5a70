"""Tree-sitter powered parser for Python stub (.pyi) declaration files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

import tree_sitter_python as _tspython
from tree_sitter import Language, Node, Parser

from .models import (
    DeclarationKind,
    DeclarationNode,
    DeclarationTree,
    Parameter,
    ParameterKind,
    Signature,
    SourceLocation,
)

PY_LANGUAGE = Language(_tspython.language())

# Statements a stub may contain without declaring anything.
_SKIPPED_STATEMENTS = {
    "import_statement",
    "import_from_statement",
    "future_import_statement",
    "pass_statement",
    "comment",
}

_DOC_EXPRESSIONS = {"string", "concatenated_string", "ellipsis"}

_TYPE_FACTORIES = {
    "TypeVar",
    "ParamSpec",
    "TypeVarTuple",
    "NewType",
    "NamedTuple",
    "TypedDict",
}

_OVERLOAD_DECORATORS = {"overload", "typing.overload", "typing_extensions.overload"}
_PROPERTY_DECORATORS = {
    "property",
    "builtins.property",
    "cached_property",
    "functools.cached_property",
    "abc.abstractproperty",
}


class ParseError(Exception):
    """Raised when a stub file cannot be turned into a declaration tree."""

    def __init__(self, message: str, location: SourceLocation) -> None:
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        return self.message


@dataclass
class _Scope:
    """Naming context for the body currently being visited."""

    file: str
    owner: str
    in_class: bool


@dataclass
class _OverloadGroup:
    name: str
    first: Node
    last: Node
    signatures: List[Signature] = field(default_factory=list)


class DeclarationParser:
    """Turns stub source into ``DeclarationTree`` values.

    Every class, function, attribute and alias at module or class level becomes
    a ``DeclarationNode``. Function bodies are never inspected.
    """

    def parse_file(
        self, path: Path, *, module: str, display_path: str | None = None
    ) -> DeclarationTree:
        file = display_path or path.as_posix()
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParseError(f"Unable to read stub file: {exc}", SourceLocation(file, 1, 0, 1, 0)) from exc
        return self.parse_source(source, file=file, module=module)

    def parse_source(self, source: str, *, file: str, module: str) -> DeclarationTree:
        # Parser instances are not shared so files can be parsed from worker threads.
        parser = Parser(PY_LANGUAGE)
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            raise _syntax_error(root, file)
        scope = _Scope(file=file, owner=module, in_class=False)
        nodes = tuple(self._visit_body(root.children, scope))
        return DeclarationTree(file=file, module=module, nodes=nodes)

    def _visit_body(self, statements: Iterable[Node], scope: _Scope) -> Iterator[DeclarationNode]:
        pending: Optional[_OverloadGroup] = None
        for statement in statements:
            definition, decorators = _unwrap_decorated(statement)
            if definition.type == "function_definition" and _is_overload(decorators):
                name = _text(definition.child_by_field_name("name"))
                signature = self._function_signature(definition, decorators, scope)
                if pending is not None and pending.name == name:
                    pending.last = definition
                    if signature is not None:
                        pending.signatures.append(signature)
                    continue
                if pending is not None:
                    yield self._flush_overloads(pending, scope)
                pending = _OverloadGroup(name=name, first=definition, last=definition)
                if signature is not None:
                    pending.signatures.append(signature)
                continue

            if pending is not None:
                yield self._flush_overloads(pending, scope)
                pending = None
            yield from self._visit_statement(statement, definition, decorators, scope)

        if pending is not None:
            yield self._flush_overloads(pending, scope)

    def _visit_statement(
        self,
        statement: Node,
        definition: Node,
        decorators: List[str],
        scope: _Scope,
    ) -> Iterator[DeclarationNode]:
        kind = definition.type
        if kind in _SKIPPED_STATEMENTS:
            return
        if kind == "class_definition":
            yield self._class_node(definition, scope)
        elif kind == "function_definition":
            node = self._function_node(definition, decorators, scope)
            if node is not None:
                yield node
        elif kind == "expression_statement":
            yield from self._expression_nodes(statement, scope)
        elif kind == "type_alias_statement":
            left = definition.child_by_field_name("left")
            name = _first_identifier(left) if left is not None else None
            if name is None:
                raise ParseError("Unsupported type alias", _location(definition, scope.file))
            yield DeclarationNode(
                kind=DeclarationKind.OTHER,
                qualified_name=_member_name(scope.owner, name),
                location=_location(definition, scope.file),
            )
        elif kind == "if_statement":
            yield from self._visit_conditional(definition, scope)
        else:
            raise ParseError(f"Unsupported statement `{kind}`", _location(definition, scope.file))

    def _visit_conditional(self, statement: Node, scope: _Scope) -> Iterator[DeclarationNode]:
        consequence = statement.child_by_field_name("consequence")
        if consequence is not None:
            yield from self._visit_body(consequence.children, scope)
        for branch in statement.children_by_field_name("alternative"):
            body = branch.child_by_field_name("consequence") or branch.child_by_field_name("body")
            if body is not None:
                yield from self._visit_body(body.children, scope)

    def _class_node(self, definition: Node, scope: _Scope) -> DeclarationNode:
        name = _text(definition.child_by_field_name("name"))
        qualified = f"{scope.owner}.{name}" if scope.owner else name
        body = definition.child_by_field_name("body")
        children: Tuple[DeclarationNode, ...] = ()
        if body is not None:
            inner = _Scope(file=scope.file, owner=qualified, in_class=True)
            children = tuple(self._visit_body(body.children, inner))
        return DeclarationNode(
            kind=DeclarationKind.TYPE_SCOPE,
            qualified_name=qualified,
            location=_location(definition, scope.file),
            children=children,
        )

    def _function_node(
        self, definition: Node, decorators: List[str], scope: _Scope
    ) -> Optional[DeclarationNode]:
        if any(name.endswith((".setter", ".deleter")) for name in decorators):
            return None
        name = _text(definition.child_by_field_name("name"))
        location = _location(definition, scope.file)
        if any(decorator in _PROPERTY_DECORATORS for decorator in decorators):
            return_type = definition.child_by_field_name("return_type")
            signatures: Tuple[Signature, ...] = ()
            if return_type is not None:
                signatures = (Signature(returns=_type_text(return_type)),)
            return DeclarationNode(
                kind=DeclarationKind.ATTRIBUTE,
                qualified_name=_member_name(scope.owner, name),
                location=location,
                signatures=signatures,
            )

        signature = self._function_signature(definition, decorators, scope)
        return DeclarationNode(
            kind=DeclarationKind.METHOD,
            qualified_name=_member_name(scope.owner, name),
            location=location,
            signatures=(signature,) if signature is not None else (),
        )

    def _flush_overloads(self, group: _OverloadGroup, scope: _Scope) -> DeclarationNode:
        start = _location(group.first, scope.file)
        end = _location(group.last, scope.file)
        return DeclarationNode(
            kind=DeclarationKind.METHOD,
            qualified_name=_member_name(scope.owner, group.name),
            location=SourceLocation(
                file=scope.file,
                start_line=start.start_line,
                start_col=start.start_col,
                end_line=end.end_line,
                end_col=end.end_col,
            ),
            signatures=tuple(group.signatures),
        )

    def _function_signature(
        self, definition: Node, decorators: List[str], scope: _Scope
    ) -> Optional[Signature]:
        """Return the explicit signature of a def, or None when nothing is annotated."""
        parameters_node = definition.child_by_field_name("parameters")
        parameters = _parameters(parameters_node) if parameters_node is not None else []

        has_receiver = scope.in_class and "staticmethod" not in decorators
        if has_receiver and parameters:
            receiver = parameters[0]
            if (
                receiver.annotation is None
                and not receiver.has_default
                and receiver.kind in (ParameterKind.POSITIONAL, ParameterKind.POSITIONAL_ONLY)
            ):
                parameters = parameters[1:]

        return_node = definition.child_by_field_name("return_type")
        returns = _type_text(return_node) if return_node is not None else None
        if returns is None and all(param.annotation is None for param in parameters):
            return None
        return Signature(parameters=tuple(parameters), returns=returns)

    def _expression_nodes(self, statement: Node, scope: _Scope) -> Iterator[DeclarationNode]:
        expression = statement.named_children[0] if statement.named_children else None
        if expression is None or expression.type in _DOC_EXPRESSIONS:
            return
        if expression.type == "augmented_assignment":
            return
        if expression.type != "assignment":
            raise ParseError(
                f"Unsupported expression `{expression.type}`", _location(statement, scope.file)
            )

        location = _location(statement, scope.file)
        annotation_node = expression.child_by_field_name("type")
        annotation = _type_text(annotation_node) if annotation_node is not None else None
        kind = DeclarationKind.ATTRIBUTE
        if annotation is not None and annotation.rsplit(".", 1)[-1] == "TypeAlias":
            kind = DeclarationKind.OTHER
            annotation = None
        elif _is_type_factory(_assigned_value(expression)):
            kind = DeclarationKind.OTHER

        signatures: Tuple[Signature, ...] = ()
        if annotation is not None:
            signatures = (Signature(returns=annotation),)

        for name in _assigned_names(expression, scope.file):
            if name == "__all__":
                continue
            yield DeclarationNode(
                kind=kind,
                qualified_name=_member_name(scope.owner, name),
                location=location,
                signatures=signatures,
            )


def _member_name(owner: str, name: str) -> str:
    return f"{owner}#{name}"


def _text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _location(node: Node, file: str) -> SourceLocation:
    start_row, start_col = node.start_point
    end_row, end_col = node.end_point
    return SourceLocation(
        file=file,
        start_line=start_row + 1,
        start_col=start_col,
        end_line=end_row + 1,
        end_col=end_col,
    )


def _syntax_error(root: Node, file: str) -> ParseError:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_missing:
            return ParseError(f"Missing `{node.type}`", _location(node, file))
        if node.type == "ERROR":
            snippet = _text(node).strip().splitlines()
            near = snippet[0][:40] if snippet else ""
            return ParseError(f"Syntax error near `{near}`", _location(node, file))
        stack.extend(reversed(node.children))
    return ParseError("Syntax error", _location(root, file))


def _type_text(node: Node) -> str:
    """Normalise a type expression to its concatenated tokens."""
    tokens: List[str] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "comment":
            continue
        if current.child_count == 0:
            tokens.append(_text(current))
            continue
        # String literals keep their inner whitespace.
        if current.type == "string":
            tokens.append(_text(current))
            continue
        stack.extend(reversed(current.children))
    return "".join(tokens)


def _parameters(node: Node) -> List[Parameter]:
    parameters: List[Parameter] = []
    keyword_only = False
    for child in node.named_children:
        kind_name = child.type
        if kind_name == "comment":
            continue
        if kind_name == "positional_separator":
            parameters = [
                Parameter(
                    name=param.name,
                    annotation=param.annotation,
                    kind=ParameterKind.POSITIONAL_ONLY,
                    has_default=param.has_default,
                )
                for param in parameters
            ]
            continue
        if kind_name == "keyword_separator":
            keyword_only = True
            continue

        annotation_node = child.child_by_field_name("type")
        annotation = _type_text(annotation_node) if annotation_node is not None else None
        has_default = kind_name in ("default_parameter", "typed_default_parameter")

        target = child
        if kind_name in ("typed_parameter", "default_parameter", "typed_default_parameter"):
            target = child.child_by_field_name("name") or child.named_children[0]

        if target.type == "list_splat_pattern":
            kind = ParameterKind.VAR_POSITIONAL
            keyword_only = True
        elif target.type == "dictionary_splat_pattern":
            kind = ParameterKind.VAR_KEYWORD
        elif keyword_only:
            kind = ParameterKind.KEYWORD_ONLY
        else:
            kind = ParameterKind.POSITIONAL

        name = _text(target).lstrip("*")
        parameters.append(
            Parameter(name=name, annotation=annotation, kind=kind, has_default=has_default)
        )
    return parameters


def _unwrap_decorated(statement: Node) -> Tuple[Node, List[str]]:
    if statement.type != "decorated_definition":
        return statement, []
    decorators: List[str] = []
    for child in statement.children:
        if child.type != "decorator" or not child.named_children:
            continue
        expression = child.named_children[0]
        if expression.type == "call":
            expression = expression.child_by_field_name("function") or expression
        decorators.append(_type_text(expression))
    definition = statement.child_by_field_name("definition")
    return (definition if definition is not None else statement), decorators


def _is_overload(decorators: List[str]) -> bool:
    return any(decorator in _OVERLOAD_DECORATORS for decorator in decorators)


def _assigned_value(assignment: Node) -> Optional[Node]:
    value = assignment.child_by_field_name("right")
    while value is not None and value.type == "assignment":
        value = value.child_by_field_name("right")
    return value


def _is_type_factory(value: Optional[Node]) -> bool:
    if value is None or value.type != "call":
        return False
    function = value.child_by_field_name("function")
    if function is None:
        return False
    return _type_text(function).rsplit(".", 1)[-1] in _TYPE_FACTORIES


def _assigned_names(assignment: Node, file: str) -> List[str]:
    """Collect target names of ``a = b = ...`` and ``a, b = ...`` assignments."""
    names: List[str] = []
    current: Optional[Node] = assignment
    while current is not None and current.type == "assignment":
        left = current.child_by_field_name("left")
        if left is None:
            break
        names.extend(_target_names(left, file))
        current = current.child_by_field_name("right")
    return names


def _target_names(target: Node, file: str) -> List[str]:
    if target.type == "identifier":
        return [_text(target)]
    if target.type in ("pattern_list", "tuple_pattern", "list_pattern"):
        names: List[str] = []
        for child in target.named_children:
            names.extend(_target_names(child, file))
        return names
    raise ParseError(f"Unsupported assignment target `{target.type}`", _location(target, file))


def _first_identifier(node: Node) -> Optional[str]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "identifier":
            return _text(current)
        stack.extend(reversed(current.children))
    return None


__all__ = ["DeclarationParser", "ParseError", "PY_LANGUAGE"]
