"""
Runs SIL programs and packages the outcome.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TextIO

from sil.sil_datatypes import Value, SymbolTable, SilError
from sil.sil_ast import Node
from sil.sil_interpreter import Evaluator
from sil.sil_transformer import SilTransformer
from sil.sil_serialize import deserialize


@dataclass
class ExecutionResult:
    """The structured result of a program execution."""
    status: Literal['success', 'error']
    value: Optional[Value] = None
    error_message: Optional[str] = None
    error_line: Optional[int] = None
    side_effects: List[Dict] = field(default_factory=list)

    @property
    def output(self) -> str:
        """Everything the program printed, in order."""
        return "".join(e['message'] for e in self.side_effects if e.get('topics') == ['stdout'])

    @property
    def diagnostics(self) -> List[str]:
        return [e['message'] for e in self.side_effects if e.get('topics') == ['stderr']]

    def format_error(self) -> str:
        """Formats an error message with its line if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        if self.error_line is not None and not msg.startswith("Error on line "):
            return f"Error on line {self.error_line}: {msg}"
        return msg


class ScriptRunner:
    """Builds and evaluates SIL programs against one symbol table.

    A runner is one run of the language: declarations made by one
    `handle_program` call are visible to the next.
    """

    _transformer: Optional[SilTransformer] = None

    def __init__(self, output: Optional[TextIO] = None):
        if ScriptRunner._transformer is None:
            ScriptRunner._transformer = SilTransformer()
        self.transformer = ScriptRunner._transformer
        self.evaluator = Evaluator(output=output)

    @property
    def symbol_table(self) -> SymbolTable:
        return self.evaluator.symbol_table

    def _result(self, status, **kwargs) -> ExecutionResult:
        # Snapshot the effects; the evaluator's list is reused by the next call.
        return ExecutionResult(status=status, side_effects=list(self.evaluator.side_effects), **kwargs)

    def _format_runtime_error(self, e: Exception) -> tuple[str, Optional[int]]:
        line = getattr(e, 'line', None)
        if line is None:
            line = getattr(self.evaluator.current_node, 'line', None)
        match e:
            case SilError():
                msg = f"{type(e).__name__}: {e}"
            case _:
                msg = f"InternalError: {type(e).__name__}: {e}"
        return msg, line

    def handle_program(self, program: Any) -> ExecutionResult:
        """The main entry point: evaluates a parse tree or an AST document."""
        self.evaluator.side_effects.clear()
        self.evaluator.current_node = None

        # 1. Build the tree when handed a document
        if isinstance(program, Node):
            root = program
        else:
            try:
                root = self.transformer.transform(program)
            except (ValueError, TypeError) as e:
                msg = f"DocumentError: {e}"
                self.evaluator.side_effects.append({'topics': ['stderr'], 'message': msg})
                return self._result('error', error_message=msg)

        # 2. Evaluate
        try:
            result = self.evaluator.eval(root)
        except Exception as e:
            err_msg, err_line = self._format_runtime_error(e)
            formatted = ExecutionResult('error', error_message=err_msg, error_line=err_line).format_error()
            # Emit consolidated stderr side-effect
            self.evaluator.side_effects.append({'topics': ['stderr'], 'message': formatted})
            return self._result('error', error_message=err_msg, error_line=err_line)

        return self._result('success', value=result)

    def handle_document(self, text: str, *, fmt: Optional[str] = None,
                        content_type: Optional[str] = None) -> ExecutionResult:
        """Deserializes a JSON or YAML AST document and runs it."""
        try:
            doc = deserialize(text, fmt=fmt, content_type=content_type)
        except Exception as e:
            msg = f"DocumentError: {e}"
            self.evaluator.side_effects.clear()
            self.evaluator.side_effects.append({'topics': ['stderr'], 'message': msg})
            return self._result('error', error_message=msg)
        return self.handle_program(doc)
