"""
Defines the core data types for the SIL language runtime.

This module provides the runtime `Value`, the `Token` handed over by the
parser, the flat `SymbolTable`, and the error classes raised during
evaluation.
"""

from enum import Enum
from typing import Dict, Optional, Union
import collections.abc


# =================================================================
# Errors
# =================================================================

class SilError(Exception):
    """Base class for every error raised while evaluating a SIL program."""
    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class TypeMismatch(SilError):
    pass


class UndefinedVariable(SilError, KeyError):
    """A missing name. Also a KeyError so the symbol table behaves as a Mapping."""
    def __init__(self, name: str, line: Optional[int] = None):
        super().__init__(f"Must define variable '{name}' before using", line)
        self.name = name


class DuplicateVariable(SilError):
    def __init__(self, name: str, line: Optional[int] = None):
        super().__init__(f"Duplicate variable '{name}'", line)
        self.name = name


class NotSliceable(SilError):
    pass


class RuntimeFailure(SilError):
    """A fatal error that aborts the whole run."""
    pass


# =================================================================
# Values
# =================================================================

class ValueKind(Enum):
    ERROR = "error"
    INT = "int"
    STR = "str"


class Value:
    """A single runtime datum tagged as an integer, a string, or empty.

    `Value()` is the empty/error value. Exactly one payload is meaningful per
    kind; reading the other one raises `TypeMismatch`.
    """
    __slots__ = ("kind", "_ival", "_sval")

    def __init__(self, payload: Union[int, str, None] = None):
        match payload:
            case None:
                self.kind = ValueKind.ERROR
            case bool():
                raise TypeError("Value does not hold booleans")
            case int():
                self.kind = ValueKind.INT
            case str():
                self.kind = ValueKind.STR
            case _:
                raise TypeError(f"Value cannot hold {type(payload).__name__}")
        self._ival = payload if self.kind is ValueKind.INT else 0
        self._sval = payload if self.kind is ValueKind.STR else ""

    def get_type(self) -> ValueKind:
        return self.kind

    def is_int(self) -> bool:
        return self.kind is ValueKind.INT

    def is_str(self) -> bool:
        return self.kind is ValueKind.STR

    def is_error(self) -> bool:
        return self.kind is ValueKind.ERROR

    @property
    def int_value(self) -> int:
        if self.kind is not ValueKind.INT:
            raise TypeMismatch(f"using int_value on a Value that is not an INT ({self.kind.value})")
        return self._ival

    @property
    def str_value(self) -> str:
        if self.kind is not ValueKind.STR:
            raise TypeMismatch(f"using str_value on a Value that is not a STRING ({self.kind.value})")
        return self._sval

    def render(self) -> str:
        """Text written by `print`: the payload followed by a newline. Empty values print nothing."""
        match self.kind:
            case ValueKind.INT:
                return f"{self._ival}\n"
            case ValueKind.STR:
                return f"{self._sval}\n"
        return ""

    def __repr__(self) -> str:
        match self.kind:
            case ValueKind.INT:
                return f"Value({self._ival})"
            case ValueKind.STR:
                return f"Value({self._sval!r})"
        return "Value()"

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self.kind is other.kind and self._ival == other._ival and self._sval == other._sval

    def __hash__(self):
        return hash((self.kind, self._ival, self._sval))


class Token:
    """The slice of a lexer token the core needs: a line number and a lexeme."""
    def __init__(self, line: int, lexeme: str):
        self.line = line
        self.lexeme = lexeme

    def __repr__(self) -> str:
        return f"Token(line={self.line}, lexeme={self.lexeme!r})"

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.line == other.line and self.lexeme == other.lexeme


# =================================================================
# Symbol table
# =================================================================

class SymbolTable(collections.abc.Mapping):
    """The single, flat SIL namespace.

    There are no nested scopes: a name is declared once and stays bound for
    the rest of the run. Reads go through the Mapping interface; writes only
    through `declare` and `assign`.
    """
    def __init__(self):
        self.bindings: Dict[str, Value] = {}

    def __getitem__(self, name: str) -> Value:
        try:
            return self.bindings[name]
        except KeyError:
            raise UndefinedVariable(name) from None

    def __iter__(self):
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)

    def __contains__(self, name) -> bool:
        return name in self.bindings

    def declare(self, name: str, value: Value) -> None:
        """Binds a new name. The first binding wins; redeclaring raises."""
        if name in self.bindings:
            raise DuplicateVariable(name)
        self.bindings[name] = value

    def assign(self, name: str, value: Value) -> None:
        """Rebinds an existing name to a value of the same kind."""
        if name not in self.bindings:
            raise UndefinedVariable(name)
        current = self.bindings[name]
        if current.kind is not value.kind:
            raise TypeMismatch(
                f"Types do not match for '{name}': expected {current.kind.value}, got {value.kind.value}"
            )
        self.bindings[name] = value

    def __repr__(self) -> str:
        keys = ', '.join(self.bindings.keys())
        return f"<SymbolTable bindings=[{keys}]>"
