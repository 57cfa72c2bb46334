"""
Transforms AST documents (plain dicts and lists, as loaded from JSON or
YAML) into SIL parse trees, and back.

A document node looks like::

    {'tag': 'var', 'line': 1, 'text': 'x', 'children': [{'tag': 'int', 'text': '3'}]}
"""

from sil.sil_datatypes import Token
from sil.sil_ast import (
    Node, StmtList, VarDecl, Assignment, Print, Repeat,
    PlusExpr, MinusExpr, TimesExpr, SliceExpr, SliceOperand,
    IConst, SConst, Ident,
)

_BINARY = {
    'plus': PlusExpr, '+': PlusExpr,
    'minus': MinusExpr, '-': MinusExpr,
    'times': TimesExpr, '*': TimesExpr,
}

_BINARY_TAGS = {PlusExpr: 'plus', MinusExpr: 'minus', TimesExpr: 'times'}


class SilTransformer:
    def _token(self, node: dict) -> Token:
        text = node.get('text', node.get('value'))
        if text is None:
            raise ValueError(f"'{node.get('tag')}' node needs a 'text' field")
        return Token(node.get('line', 0), str(text))

    def _children(self, node: dict, arity: int) -> list:
        children = node.get('children', [])
        if not isinstance(children, list):
            children = [children]
        if len(children) != arity:
            raise ValueError(f"'{node.get('tag')}' node expects {arity} children, got {len(children)}")
        return [self.transform(c) for c in children]

    def _fold(self, statements: list, line: int = 0) -> Node:
        """Builds the right-nested StmtList chain for a sequence of statements."""
        if not statements:
            raise ValueError("a statement list needs at least one statement")
        nodes = [self.transform(s) for s in statements]
        tail = StmtList(nodes[-1], None, line)
        for stmt in reversed(nodes[:-1]):
            tail = StmtList(stmt, tail, line)
        return tail

    def transform(self, node: object) -> Node:
        # A bare list is a program
        if isinstance(node, list):
            return self._fold(node)

        # Bare integers are integer literals
        if isinstance(node, int) and not isinstance(node, bool):
            return IConst(Token(0, str(node)))

        if not isinstance(node, dict) or 'tag' not in node:
            raise ValueError(f"not an AST document node: {node!r}")

        tag = node['tag']
        line = node.get('line', 0)

        match tag:
            case 'program' | 'stmts':
                return self._fold(node.get('children', []), line)
            case 'var':
                return VarDecl(self._token(node), *self._children(node, 1))
            case 'set' | 'assign':
                return Assignment(self._token(node), *self._children(node, 1))
            case 'print':
                return Print(line, *self._children(node, 1))
            case 'repeat':
                raw = node.get('children', [])
                if not isinstance(raw, list) or len(raw) != 2:
                    raise ValueError(f"'repeat' node expects 2 children, got {raw!r}")
                count, body = raw
                body_node = self._fold(body, line) if isinstance(body, list) else self.transform(body)
                return Repeat(line, self.transform(count), body_node)
            case 'slice':
                return SliceExpr(line, *self._children(node, 2))
            case 'range':
                return SliceOperand(line, *self._children(node, 2))
            case 'int':
                return IConst(self._token(node))
            case 'str':
                return SConst(self._token(node))
            case 'ident':
                return Ident(self._token(node))
            case _ if tag in _BINARY:
                return _BINARY[tag](line, *self._children(node, 2))
            case _:
                raise ValueError(f"Unknown AST document tag: {tag!r}")

    def to_document(self, node: Node) -> dict:
        """The inverse of `transform`: a plain dict suitable for JSON or YAML."""
        match node:
            case StmtList():
                return {'tag': 'program', 'children': [self.to_document(s) for s in node.statements()]}
            case VarDecl():
                return {'tag': 'var', 'line': node.line, 'text': node.name, 'children': [self.to_document(node.expr)]}
            case Assignment():
                return {'tag': 'set', 'line': node.line, 'text': node.name, 'children': [self.to_document(node.expr)]}
            case Print():
                return {'tag': 'print', 'line': node.line, 'children': [self.to_document(node.expr)]}
            case Repeat():
                return {'tag': 'repeat', 'line': node.line,
                        'children': [self.to_document(node.count), self.to_document(node.body)]}
            case SliceExpr():
                return {'tag': 'slice', 'line': node.line,
                        'children': [self.to_document(node.seq), self.to_document(node.bounds)]}
            case SliceOperand():
                return {'tag': 'range', 'line': node.line,
                        'children': [self.to_document(node.low), self.to_document(node.high)]}
            case IConst():
                return {'tag': 'int', 'line': node.line, 'text': str(node.value)}
            case SConst():
                return {'tag': 'str', 'line': node.line, 'text': node.value}
            case Ident():
                return {'tag': 'ident', 'line': node.line, 'text': node.name}
            case PlusExpr() | MinusExpr() | TimesExpr():
                return {'tag': _BINARY_TAGS[type(node)], 'line': node.line,
                        'children': [self.to_document(node.left), self.to_document(node.right)]}
        raise TypeError(f"Cannot convert {type(node).__name__} to a document")
