"""
The core SIL interpreter: the Evaluator.
"""
from typing import Any, Dict, List, Optional, TextIO

from sil.sil_datatypes import (
    Value, SymbolTable, SilError,
    TypeMismatch, UndefinedVariable, DuplicateVariable, NotSliceable, RuntimeFailure,
)
from sil.sil_ast import (
    Node, StmtList, VarDecl, Assignment, Print, Repeat,
    PlusExpr, MinusExpr, TimesExpr, SliceExpr, SliceOperand,
    IConst, SConst, Ident,
)


class Evaluator:
    """The SIL execution engine.

    Holds everything a run shares: the symbol table, the optional output
    stream `print` writes to, and the ordered list of side effects (program
    output and diagnostics).

    Errors come in two severities. Reported errors (duplicate declaration,
    bad assignment, slicing a non-string) add a `stderr` side effect and the
    offending node yields `Value(0)`. Anything else raised as a `SilError`
    propagates out of `eval` and ends the run.
    """
    def __init__(self, symbol_table: Optional[SymbolTable] = None, output: Optional[TextIO] = None):
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self.output = output
        self.side_effects: List[Dict[str, Any]] = []
        self.current_node: Optional[Node] = None

    @property
    def diagnostics(self) -> List[Dict[str, Any]]:
        return [e for e in self.side_effects if e.get('topics') == ['stderr']]

    def eval(self, node: Node) -> Value:
        """Evaluates a tree and returns the value of its root."""
        return self._eval(node)

    def _eval(self, node: Node) -> Value:
        """Recursive dispatcher for evaluating any AST node."""
        self.current_node = node
        match node:
            case StmtList():
                result = Value()
                for stmt in node.statements():
                    result = self._eval(stmt)
                return result
            case VarDecl():
                return self._eval_var_decl(node)
            case Assignment():
                return self._eval_assignment(node)
            case Print():
                value = self._eval(node.expr)
                self._emit('stdout', value.render())
                return value
            case Repeat():
                return self._eval_repeat(node)
            case PlusExpr():
                return self._eval_plus(node)
            case MinusExpr():
                return self._eval_minus(node)
            case TimesExpr():
                return self._eval_times(node)
            case SliceExpr():
                return self._eval_slice(node)
            case SliceOperand():
                return self._eval_slice_operand(node)
            case IConst():
                return Value(node.value)
            case SConst():
                return Value(node.value)
            case Ident():
                try:
                    return self.symbol_table[node.name]
                except UndefinedVariable as e:
                    e.line = node.line
                    raise
            case _:
                raise TypeError(f"Cannot evaluate {type(node).__name__}")

    # --- side effects ---

    def _emit(self, topic: str, message: str, **extra) -> None:
        self.side_effects.append({'topics': [topic], 'message': message, **extra})
        if topic == 'stdout' and self.output is not None:
            self.output.write(message)

    def _report(self, err: SilError, node: Node) -> Value:
        """Records a recoverable error and returns the fallback value.

        The diagnostic carries the line of the node's first operand (the value
        being bound or sliced), falling back to the node's own line.
        """
        line = err.line
        if line is None:
            line = (node.left.line if node.left is not None else 0) or node.line
        self._emit('stderr', f"{line}: {err}", kind=type(err).__name__, line=line)
        return Value(0)

    # --- statements ---

    def _eval_var_decl(self, node: VarDecl) -> Value:
        value = self._eval(node.expr)
        try:
            self.symbol_table.declare(node.name, value)
        except DuplicateVariable as e:
            return self._report(e, node)
        return value

    def _eval_assignment(self, node: Assignment) -> Value:
        value = self._eval(node.expr)
        try:
            self.symbol_table.assign(node.name, value)
        except (UndefinedVariable, TypeMismatch) as e:
            return self._report(e, node)
        return value

    def _eval_repeat(self, node: Repeat) -> Value:
        count = self._eval(node.count)
        if not count.is_int() or count.int_value < 0:
            raise RuntimeFailure(f"repeat count must be a non-negative integer, got {count!r}", node.line)
        result = Value()
        for _ in range(count.int_value):
            result = self._eval(node.body)
        return result

    # --- operators ---

    def _as_text(self, value: Value, node: Node) -> str:
        """Textual form used by the string fallbacks of + and -."""
        if value.is_int():
            return str(value.int_value)
        if value.is_str():
            return value.str_value
        raise TypeMismatch("an empty value has no textual form", node.line)

    def _eval_plus(self, node: PlusExpr) -> Value:
        lhs = self._eval(node.left)
        rhs = self._eval(node.right)
        if lhs.is_int() and rhs.is_int():
            return Value(lhs.int_value + rhs.int_value)
        return Value(self._as_text(lhs, node) + self._as_text(rhs, node))

    def _eval_minus(self, node: MinusExpr) -> Value:
        lhs = self._eval(node.left)
        rhs = self._eval(node.right)
        if lhs.is_int() and rhs.is_int():
            return Value(lhs.int_value - rhs.int_value)
        # Remove the first occurrence of the right text.
        text = self._as_text(lhs, node)
        needle = self._as_text(rhs, node)
        pos = text.find(needle)
        if pos < 0:
            return Value(text)
        return Value(text[:pos] + text[pos + len(needle):])

    def _eval_times(self, node: TimesExpr) -> Value:
        lhs = self._eval(node.left)
        rhs = self._eval(node.right)
        match (lhs.is_int(), lhs.is_str(), rhs.is_int(), rhs.is_str()):
            case (True, _, True, _):
                return Value(lhs.int_value * rhs.int_value)
            case (_, True, True, _):
                return Value(lhs.str_value * max(rhs.int_value, 0))
            case (True, _, _, True):
                return Value(rhs.str_value * max(lhs.int_value, 0))
        return Value(0)

    # --- slices ---

    def _eval_slice(self, node: SliceExpr) -> Value:
        seq = self._eval(node.seq)
        # The bounds node hands out the low bound first, then the high bound.
        start = self._eval(node.bounds)
        end = self._eval(node.bounds)

        if not seq.is_str():
            what = "an integer" if seq.is_int() else "an empty value"
            return self._report(NotSliceable(f"Cannot slice {what}"), node)

        text = seq.str_value
        lo, hi = start.int_value, end.int_value
        if lo < 0 or hi >= len(text):
            raise RuntimeFailure(
                f"slice [{lo}:{hi}] is out of range for a string of length {len(text)}", node.line
            )
        return Value(text[lo:hi + 1])

    def _eval_slice_operand(self, node: SliceOperand) -> Value:
        if not node.first_pending:
            return node.high_value

        low = self._eval(node.low)
        high = self._eval(node.high)
        if not low.is_int() or low.int_value < 0:
            raise RuntimeFailure(f"slice start must be a non-negative integer, got {low!r}", node.line)
        if not high.is_int() or high.int_value < low.int_value:
            raise RuntimeFailure(f"slice end must be an integer not less than {low.int_value}, got {high!r}", node.line)

        node.first_pending = False
        node.high_value = high
        return low
