"""
A pretty-printer for SIL values and parse trees.
"""

from sil.sil_datatypes import Value, ValueKind
from sil.sil_ast import (
    StmtList, VarDecl, Assignment, Print, Repeat,
    PlusExpr, MinusExpr, TimesExpr, SliceExpr, SliceOperand,
    IConst, SConst, Ident,
)


class Printer:
    """Formats SIL values and trees as readable s-expressions."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            # Default to Python's repr for unknown types
            return repr(obj)
        return handler(obj, level)

    def _create_handlers(self):
        return {
            Value: self._pformat_value,
            StmtList: self._pformat_stmt_list,
            VarDecl: self._pformat_var_decl,
            Assignment: self._pformat_assignment,
            Print: self._pformat_print,
            Repeat: self._pformat_repeat,
            PlusExpr: self._pformat_binary,
            MinusExpr: self._pformat_binary,
            TimesExpr: self._pformat_binary,
            SliceExpr: self._pformat_slice,
            SliceOperand: self._pformat_slice_operand,
            IConst: self._pformat_iconst,
            SConst: self._pformat_sconst,
            Ident: self._pformat_ident,
        }

    def _pformat_value(self, obj, level):
        match obj.kind:
            case ValueKind.INT:
                return str(obj.int_value)
            case ValueKind.STR:
                return self._quote(obj.str_value)
        return "<error>"

    def _quote(self, text):
        escaped = text.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
        return f"'{escaped}'"

    def _pformat_stmt_list(self, obj, level):
        indent = self._indent_char * level
        lines = [self.pformat(stmt, level) for stmt in obj.statements()]
        # Only the first line of the list picks up the caller's indentation.
        return f"\n{indent}".join(lines)

    def _pformat_var_decl(self, obj, level):
        return f"(var {obj.name} {self.pformat(obj.expr, level)})"

    def _pformat_assignment(self, obj, level):
        return f"(set {obj.name} {self.pformat(obj.expr, level)})"

    def _pformat_print(self, obj, level):
        return f"(print {self.pformat(obj.expr, level)})"

    def _pformat_repeat(self, obj, level):
        inner = self._indent_char * (level + 1)
        body = self.pformat(obj.body, level + 1)
        return f"(repeat {self.pformat(obj.count, level)}\n{inner}{body})"

    def _pformat_binary(self, obj, level):
        return f"({obj.symbol} {self.pformat(obj.left, level)} {self.pformat(obj.right, level)})"

    def _pformat_slice(self, obj, level):
        return f"(slice {self.pformat(obj.seq, level)} {self.pformat(obj.bounds, level)})"

    def _pformat_slice_operand(self, obj, level):
        return f"(range {self.pformat(obj.low, level)} {self.pformat(obj.high, level)})"

    def _pformat_iconst(self, obj, level):
        return str(obj.value)

    def _pformat_sconst(self, obj, level):
        return self._quote(obj.value)

    def _pformat_ident(self, obj, level):
        return obj.name
