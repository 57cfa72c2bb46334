"""
The SIL parse tree.

Every node has a source line and at most two children. Children are owned
by exactly one parent: handing a node that is already attached elsewhere to
a constructor raises `ValueError`, so the tree is acyclic by construction.

Nodes only describe the program. Evaluation lives in
`sil.sil_interpreter.Evaluator`, which dispatches on the node class.
"""

from typing import Optional, Set, Tuple

from sil.sil_datatypes import Token, ValueKind, Value


class Node:
    """Base class for all parse tree nodes."""
    def __init__(self, line: int, left: Optional['Node'] = None, right: Optional['Node'] = None):
        self.line = line
        self._attached = False
        self.left = self._adopt(left)
        self.right = self._adopt(right)

    @staticmethod
    def _adopt(child: Optional['Node']) -> Optional['Node']:
        if child is None:
            return None
        if not isinstance(child, Node):
            raise TypeError(f"Expected a Node child, got {type(child).__name__}")
        if child._attached:
            raise ValueError(f"{type(child).__name__} on line {child.line} already belongs to another node")
        child._attached = True
        return child

    def children(self) -> Tuple['Node', ...]:
        return tuple(c for c in (self.left, self.right) if c is not None)

    # --- identity queries ---

    def get_type(self) -> ValueKind:
        return ValueKind.ERROR

    def is_ident(self) -> bool:
        return False

    def is_var(self) -> bool:
        return False

    def get_id(self) -> str:
        return ""

    # --- structural queries ---

    def walk(self):
        """Yields every node of the subtree, parents before children.

        Uses an explicit stack: statement lists are long right-nested chains.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def leaf_count(self) -> int:
        return sum(1 for n in self.walk() if not n.children())

    def ident_count(self) -> int:
        return sum(1 for n in self.walk() if n.is_ident())

    def get_vars(self, found: Optional[Set[str]] = None) -> Set[str]:
        """Collects every variable name the subtree declares, assigns or reads."""
        if found is None:
            found = set()
        for n in self.walk():
            if n.get_id():
                found.add(n.get_id())
        return found

    def _payload(self) -> tuple:
        return ()

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        pending = [(self, other)]
        while pending:
            a, b = pending.pop()
            if a is None or b is None:
                if a is not b:
                    return False
                continue
            if type(a) is not type(b) or a.line != b.line or a._payload() != b._payload():
                return False
            pending.append((a.left, b.left))
            pending.append((a.right, b.right))
        return True

    __hash__ = None

    def __repr__(self) -> str:
        from sil.sil_printer import Printer
        return f"<{type(self).__name__} {Printer().pformat(self)}>"


class NamedNode(Node):
    """A node built from an identifier token."""
    def __init__(self, token: Token, left: Optional[Node] = None):
        super().__init__(token.line, left)
        self.name = token.lexeme

    def get_id(self) -> str:
        return self.name

    def _payload(self) -> tuple:
        return (self.name,)


class BinaryExpr(Node):
    """An operator over two operand expressions."""
    symbol = "?"

    def __init__(self, line: int, left: Node, right: Node):
        if left is None or right is None:
            raise ValueError(f"{type(self).__name__} needs two operands")
        super().__init__(line, left, right)


# =================================================================
# Statements
# =================================================================

class StmtList(Node):
    """A statement followed by the rest of the list (or nothing)."""
    def __init__(self, left: Node, right: Optional[Node] = None, line: int = 0):
        if left is None:
            raise ValueError("StmtList needs a first statement")
        super().__init__(line, left, right)

    def statements(self):
        """Yields the statements of a right-nested list in source order."""
        node = self
        while isinstance(node, StmtList):
            yield node.left
            node = node.right
        if node is not None:
            yield node


class VarDecl(NamedNode):
    def __init__(self, token: Token, expr: Node):
        super().__init__(token, expr)

    @property
    def expr(self) -> Node:
        return self.left

    def is_var(self) -> bool:
        return True


class Assignment(NamedNode):
    def __init__(self, token: Token, expr: Node):
        super().__init__(token, expr)

    @property
    def expr(self) -> Node:
        return self.left


class Print(Node):
    def __init__(self, line: int, expr: Node):
        super().__init__(line, expr)

    @property
    def expr(self) -> Node:
        return self.left


class Repeat(Node):
    def __init__(self, line: int, count: Node, body: Node):
        super().__init__(line, count, body)

    @property
    def count(self) -> Node:
        return self.left

    @property
    def body(self) -> Node:
        return self.right


# =================================================================
# Expressions
# =================================================================

class PlusExpr(BinaryExpr):
    symbol = "+"


class MinusExpr(BinaryExpr):
    symbol = "-"


class TimesExpr(BinaryExpr):
    symbol = "*"


class SliceExpr(Node):
    """`seq[low:high]`, where the right child is the SliceOperand holding both bounds."""
    def __init__(self, line: int, seq: Node, bounds: Node):
        super().__init__(line, seq, bounds)

    @property
    def seq(self) -> Node:
        return self.left

    @property
    def bounds(self) -> Node:
        return self.right


class SliceOperand(Node):
    """The `low:high` pair of a slice.

    Stateful: the first evaluation yields the low bound, every later one
    yields the high bound. There is no reset.
    """
    def __init__(self, line: int, low: Node, high: Node):
        super().__init__(line, low, high)
        self.first_pending = True
        self.high_value: Optional[Value] = None

    @property
    def low(self) -> Node:
        return self.left

    @property
    def high(self) -> Node:
        return self.right


class IConst(Node):
    def __init__(self, token: Token):
        super().__init__(token.line)
        self.value = int(token.lexeme)

    def get_type(self) -> ValueKind:
        return ValueKind.INT

    def _payload(self) -> tuple:
        return (self.value,)


class SConst(Node):
    def __init__(self, token: Token):
        super().__init__(token.line)
        self.value = token.lexeme

    def get_type(self) -> ValueKind:
        return ValueKind.STR

    def _payload(self) -> tuple:
        return (self.value,)


class Ident(NamedNode):
    def __init__(self, token: Token):
        super().__init__(token)

    def is_ident(self) -> bool:
        return True
