# reqgen/errors.py
"""
Exception hierarchy for request generation, dispatch and data loading.

Input-stage errors (TemplateNotFound, DataSourceError) abort a run.
Everything else is caught at the case boundary and recorded as an
ERROR outcome for that case.
"""

from __future__ import annotations

from typing import Iterable, Optional


class ReqGenError(Exception):
    """Base exception for reqgen errors."""
    pass


# ==================== Record access ====================

class WrongVariantAccess(ReqGenError):
    """Raised when a getter is called on the wrong record shape."""
    def __init__(self, kind: str, operation: str):
        self.kind = kind
        self.operation = operation
        super().__init__(f"{operation} is not valid on a {kind} record")


class IndexOutOfRange(ReqGenError, IndexError):
    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"index {index} out of range for list of length {length}")


# ==================== Request generation ====================

class TemplateCycleDetected(ReqGenError):
    """Raised when substitution does not converge within the pass limit."""
    def __init__(self, passes: int, unresolved: Iterable[str]):
        self.passes = passes
        self.unresolved = sorted(set(unresolved))
        names = ", ".join(f"<<{n}>>" for n in self.unresolved)
        super().__init__(f"template still has markers after {passes} passes: {names}")


class MissingRequiredField(ReqGenError):
    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"missing required field(s): {', '.join(self.fields)}")


class RequestParseError(ReqGenError):
    """Base for errors raised while parsing a filled template."""
    def __init__(self, message: str, line_no: Optional[int] = None, line: Optional[str] = None):
        self.line_no = line_no
        self.line = line
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class UnsupportedMethod(RequestParseError):
    pass


class MalformedRequestLine(RequestParseError):
    pass


class MalformedHeader(RequestParseError):
    pass


# ==================== Dispatch ====================

class TransportError(ReqGenError):
    """Raised when the HTTP call itself fails (connect, timeout, protocol)."""
    def __init__(self, method: str, url: str, original_error: Exception):
        self.method = method
        self.url = url
        self.original_error = original_error
        super().__init__(f"{method} {url} failed: {type(original_error).__name__}: {original_error}")


# ==================== Input stage ====================

class TemplateNotFound(ReqGenError):
    pass


class DataSourceError(ReqGenError):
    pass
