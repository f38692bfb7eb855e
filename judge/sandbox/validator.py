"""
Static checks run on a submission before it is loaded.

Rejects source that cannot parse or that reaches for modules, builtins or
attributes the sandbox does not offer. Runtime isolation in the child
process still applies to whatever passes.
"""

import ast
from dataclasses import dataclass
from typing import Set, List, Optional


class ValidationError(Exception):
    """Raised when code fails validation."""

    def __init__(self, message: str, violations: List[str]):
        self.message = message
        self.violations = violations
        super().__init__(f"{message}: {', '.join(violations)}")


@dataclass
class ValidationResult:
    """Result of code validation."""
    valid: bool
    violations: List[str]
    imports_used: Set[str]


# Modules that are NEVER allowed
FORBIDDEN_MODULES = frozenset({
    # System access
    "os", "sys", "subprocess", "shutil", "pathlib",
    "glob", "fnmatch", "tempfile", "io",

    # Network
    "socket", "http", "urllib", "requests", "httpx",
    "aiohttp", "websocket", "ssl", "ftplib", "smtplib",

    # Process/threading
    "multiprocessing", "threading", "concurrent",
    "_thread", "signal", "asyncio",

    # Code execution
    "code", "codeop", "importlib", "runpy",
    "types", "builtins",

    # Introspection
    "inspect", "gc", "traceback", "linecache",

    # Native and serialization
    "ctypes", "pickle", "shelve", "marshal",
    "pty", "tty", "termios", "fcntl",
    "resource", "mmap", "sysconfig",

    # File access
    "fileinput", "stat", "filecmp",
})

# Modules a typical interview answer needs
ALLOWED_MODULES = frozenset({
    # Data structures
    "collections", "heapq", "bisect", "array",
    "dataclasses", "enum", "typing",

    # Math
    "math", "cmath", "decimal", "fractions",
    "random", "statistics",

    # Strings and data
    "string", "re", "json",

    # Iteration/functional
    "itertools", "functools", "operator",

    "copy",
})

FORBIDDEN_BUILTINS = frozenset({
    "eval", "exec", "compile", "__import__",
    "open", "input", "breakpoint",
    "globals", "locals", "vars", "dir",
    "getattr", "setattr", "delattr", "hasattr",
    "memoryview",
})

FORBIDDEN_ATTRIBUTES = frozenset({
    "__class__", "__bases__", "__subclasses__",
    "__mro__", "__globals__", "__code__",
    "__builtins__", "__import__", "__loader__",
    "__spec__", "__dict__", "__closure__",
    "gi_frame", "f_globals", "f_back",
})

# Dunder names user classes define or call; every other underscore name is off limits
ALLOWED_DUNDERS = frozenset({
    "__init__", "__post_init__", "__new__", "__repr__", "__str__",
    "__eq__", "__ne__", "__lt__", "__le__", "__gt__", "__ge__", "__hash__",
    "__len__", "__iter__", "__next__", "__contains__", "__bool__",
    "__getitem__", "__setitem__", "__delitem__", "__call__",
    "__add__", "__sub__", "__mul__", "__truediv__", "__floordiv__", "__mod__",
    "__neg__", "__enter__", "__exit__", "__name__", "__doc__", "__main__",
})

# Receivers whose own private members may be used
SELF_NAMES = frozenset({"self", "cls"})


def _is_private_dunder(name: str) -> bool:
    return (
        name in FORBIDDEN_ATTRIBUTES
        or (name.startswith('__') and name.endswith('__') and len(name) > 4 and name not in ALLOWED_DUNDERS)
    )


class CodeValidator:
    """
    Validates submitted Python code before it is loaded.

    Uses AST analysis to detect dangerous patterns. Passing validation does
    not make code safe on its own; it only narrows what reaches the sandbox.
    """

    def __init__(
        self,
        allowed_modules: Optional[Set[str]] = None,
        forbidden_modules: Optional[Set[str]] = None,
        forbidden_builtins: Optional[Set[str]] = None,
        max_code_length: int = 100_000,
    ):
        self.allowed_modules = allowed_modules or ALLOWED_MODULES
        self.forbidden_modules = forbidden_modules or FORBIDDEN_MODULES
        self.forbidden_builtins = forbidden_builtins or FORBIDDEN_BUILTINS
        self.max_code_length = max_code_length

    def validate(self, code: str) -> ValidationResult:
        """
        Validate Python code for security issues.

        Returns ValidationResult with valid=False if any issues found.
        """
        violations = []
        imports_used: Set[str] = set()

        if len(code) > self.max_code_length:
            violations.append(f"Code exceeds maximum length ({len(code)} > {self.max_code_length})")
            return ValidationResult(valid=False, violations=violations, imports_used=imports_used)

        try:
            tree = ast.parse(code)
        except SyntaxError as e:
            violations.append(f"Syntax error: {e}")
            return ValidationResult(valid=False, violations=violations, imports_used=imports_used)

        module_aliases = self._module_aliases(tree)

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    violations.extend(self._check_module(alias.name, imports_used))

            elif isinstance(node, ast.ImportFrom):
                if node.level:
                    violations.append("Relative imports are not allowed")
                elif node.module:
                    violations.extend(self._check_module(node.module, imports_used, prefix="from "))

            elif isinstance(node, ast.Call):
                if isinstance(node.func, ast.Name):
                    if node.func.id in self.forbidden_builtins:
                        violations.append(f"Forbidden builtin: {node.func.id}()")

            elif isinstance(node, ast.Attribute):
                violations.extend(self._check_attribute(node, module_aliases))

            elif isinstance(node, ast.Constant):
                # getattr-style access through a string literal
                if isinstance(node.value, str) and _is_private_dunder(node.value):
                    violations.append(f"Suspicious string constant: '{node.value}'")

        return ValidationResult(
            valid=len(violations) == 0,
            violations=violations,
            imports_used=imports_used,
        )

    @staticmethod
    def _module_aliases(tree: ast.AST) -> Set[str]:
        """Names bound by import statements anywhere in the tree."""
        aliases = set()
        for node in ast.walk(tree):
            if isinstance(node, (ast.Import, ast.ImportFrom)):
                for alias in node.names:
                    aliases.add(alias.asname or alias.name.split('.')[0])
        return aliases

    def _check_attribute(self, node: ast.Attribute, module_aliases: Set[str]) -> List[str]:
        attr = node.attr
        receiver = node.value.id if isinstance(node.value, ast.Name) else None

        if attr in FORBIDDEN_ATTRIBUTES:
            return [f"Forbidden attribute access: .{attr}"]
        if attr.startswith('_') and attr not in ALLOWED_DUNDERS and receiver not in SELF_NAMES:
            return [f"Private attribute access: .{attr}"]
        # e.g. typing.sys: a forbidden module re-exported by an allowed one
        if receiver in module_aliases and (attr in self.forbidden_modules or attr in self.forbidden_builtins):
            return [f"Forbidden attribute access: {receiver}.{attr}"]
        return []

    def _check_module(self, dotted_name: str, imports_used: Set[str], prefix: str = "") -> List[str]:
        module = dotted_name.split('.')[0]
        imports_used.add(module)
        if module in self.forbidden_modules:
            return [f"Forbidden import: {prefix}{module}"]
        if module not in self.allowed_modules:
            return [f"Disallowed import: {prefix}{module} (not in whitelist)"]
        return []

    def validate_or_raise(self, code: str) -> ValidationResult:
        """Validate and raise ValidationError if invalid."""
        result = self.validate(code)
        if not result.valid:
            raise ValidationError("Code validation failed", result.violations)
        return result
