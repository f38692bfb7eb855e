"""
Sandboxed evaluator for untrusted submissions.

Every evaluation gets its own child process:
1. Static validation (validator.py) rejects code that cannot load safely
2. Restricted builtins and an import guard form the execution context
3. Resource limits cap memory, CPU seconds, processes and file writes
4. The parent enforces the wall-clock bound and kills the child on expiry

The child talks back over a one-way pipe. It first reports that it is
ready, which starts the clock, then reports the outcome. Return values
cross the pipe as JSON, so only JSON-serializable data comes back.

LIMITATIONS:
- No namespace or network isolation (would need nsjail/bubblewrap)
- Resource limits are POSIX only
"""

import builtins
import contextlib
import io
import json
import logging
import multiprocessing
import resource
import signal
import time
import traceback
import types
from typing import Any, Dict, FrozenSet, List, Optional

from ..config import (
    EVAL_MAX_TIME_LIMIT_MS,
    EVAL_TIME_LIMIT_MS,
    SANDBOX_MAX_OUTPUT_BYTES,
    SANDBOX_MEMORY_MB,
    SANDBOX_STARTUP_TIMEOUT_SECONDS,
)
from .entrypoint import resolve_entry_point
from .errors import EntryPointNotFound, EvaluationError, EvaluationTimeout, RuntimeFault
from .types import CodeSubmission, EvaluationState, ExecutionResult
from .validator import CodeValidator, ValidationError

logger = logging.getLogger(__name__)

# Names injected into the execution context
INPUT_BINDING = "input_value"
OUTPUT_BINDING = "result"

# Restricted builtins - what a self-contained algorithm needs
RESTRICTED_BUILTINS = {
    # Types
    'None': None,
    'True': True,
    'False': False,
    'int': int,
    'float': float,
    'complex': complex,
    'bool': bool,
    'str': str,
    'bytes': bytes,
    'bytearray': bytearray,
    'list': list,
    'tuple': tuple,
    'dict': dict,
    'set': set,
    'frozenset': frozenset,
    'object': object,
    'type': type,

    # Functions
    'abs': abs,
    'all': all,
    'any': any,
    'ascii': ascii,
    'bin': bin,
    'callable': callable,
    'chr': chr,
    'divmod': divmod,
    'enumerate': enumerate,
    'filter': filter,
    'format': format,
    'hash': hash,
    'id': id,
    'hex': hex,
    'isinstance': isinstance,
    'issubclass': issubclass,
    'iter': iter,
    'len': len,
    'map': map,
    'max': max,
    'min': min,
    'next': next,
    'oct': oct,
    'ord': ord,
    'pow': pow,
    'print': print,  # Captured to stdout
    'range': range,
    'repr': repr,
    'reversed': reversed,
    'round': round,
    'slice': slice,
    'sorted': sorted,
    'sum': sum,
    'zip': zip,

    # Class definitions
    '__build_class__': builtins.__build_class__,
    'classmethod': classmethod,
    'staticmethod': staticmethod,
    'property': property,
    'super': super,

    # Exceptions
    'BaseException': BaseException,
    'Exception': Exception,
    'ArithmeticError': ArithmeticError,
    'AssertionError': AssertionError,
    'AttributeError': AttributeError,
    'IndexError': IndexError,
    'KeyError': KeyError,
    'LookupError': LookupError,
    'NameError': NameError,
    'NotImplementedError': NotImplementedError,
    'OverflowError': OverflowError,
    'RecursionError': RecursionError,
    'RuntimeError': RuntimeError,
    'StopIteration': StopIteration,
    'TypeError': TypeError,
    'ValueError': ValueError,
    'ZeroDivisionError': ZeroDivisionError,
}


def _is_allowed_module(name: str, allowed_modules: FrozenSet[str]) -> bool:
    parts = name.split('.')
    return parts[0] in allowed_modules and not any(part.startswith('_') for part in parts)


def _public_view(module: types.ModuleType, allowed_modules: FrozenSet[str], views: Dict[str, types.ModuleType]):
    """
    Stand-in for an allowed module holding only its public members.

    Private names are dropped, and so are modules it imported for itself
    (random.os, typing.sys) unless they are allowed too.
    """
    if module.__name__ in views:
        return views[module.__name__]

    view = types.ModuleType(module.__name__, module.__doc__)
    views[module.__name__] = view
    for key, value in vars(module).items():
        if key.startswith('_'):
            continue
        if isinstance(value, types.ModuleType):
            if not _is_allowed_module(value.__name__, allowed_modules):
                continue
            value = _public_view(value, allowed_modules, views)
        setattr(view, key, value)
    return view


def _make_import_guard(allowed_modules: FrozenSet[str]):
    real_import = builtins.__import__
    views: Dict[str, types.ModuleType] = {}

    def guarded_import(name, globals=None, locals=None, fromlist=(), level=0):
        if level != 0 or not _is_allowed_module(name, allowed_modules):
            raise ImportError(f"Import of '{name}' is not allowed")
        module = real_import(name, globals, locals, fromlist, level)
        return _public_view(module, allowed_modules, views)

    return guarded_import


def _set_resource_limits(memory_mb: int, cpu_seconds: int) -> List[str]:
    """Set resource limits for the current process. Returns any that failed."""
    failures = []
    limits = [
        (resource.RLIMIT_AS, memory_mb * 1024 * 1024, memory_mb * 1024 * 1024),
        # Backstop in case the parent cannot kill us
        (resource.RLIMIT_CPU, cpu_seconds, cpu_seconds + 1),
        # No forking
        (resource.RLIMIT_NPROC, 0, 0),
        # No files
        (resource.RLIMIT_FSIZE, 0, 0),
        (resource.RLIMIT_CORE, 0, 0),
    ]
    for limit, soft, hard in limits:
        try:
            resource.setrlimit(limit, (soft, hard))
        except (ValueError, OSError) as e:
            failures.append(f"{limit}: {e}")
    return failures


def _format_error(exc: BaseException) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def _run_in_sandbox(
    source_text: str,
    entry_point_name: str,
    input_value: Any,
    cpu_seconds: int,
    memory_mb: int,
    max_output_bytes: int,
    allowed_modules: FrozenSet[str],
    conn,
):
    """
    Load and invoke a submission. Runs in the child process.

    Sends a ``ready`` message once limits are in place, then exactly one
    ``finished`` message describing the outcome.
    """
    limit_failures = _set_resource_limits(memory_mb, cpu_seconds)
    conn.send({"event": "ready", "warnings": limit_failures})

    captured_stdout = io.StringIO()
    captured_stderr = io.StringIO()
    report: Dict[str, Any] = {"event": "finished", "entry_point": entry_point_name}

    sandbox_builtins = dict(RESTRICTED_BUILTINS)
    sandbox_builtins['__import__'] = _make_import_guard(allowed_modules)
    context = {
        '__builtins__': sandbox_builtins,
        '__name__': '__sandbox__',
        '__doc__': None,
        INPUT_BINDING: input_value,
        OUTPUT_BINDING: None,
    }

    state = EvaluationState.LOADING
    start = time.perf_counter()
    try:
        with contextlib.redirect_stdout(captured_stdout), contextlib.redirect_stderr(captured_stderr):
            exec(compile(source_text, "<submission>", "exec"), context)

            func = context.get(entry_point_name)
            if not callable(func):
                raise EntryPointNotFound(f"Entry point '{entry_point_name}' is not defined as a callable")

            state = EvaluationState.INVOKING
            context[OUTPUT_BINDING] = func(context[INPUT_BINDING])

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        try:
            encoded = json.dumps(context[OUTPUT_BINDING], allow_nan=False)
        except (TypeError, ValueError) as e:
            raise RuntimeFault(f"Return value is not JSON-serializable: {e}")
        if len(encoded) > max_output_bytes:
            raise RuntimeFault(f"Return value exceeds {max_output_bytes} bytes")

        report.update(state=EvaluationState.COMPLETED.value, value=encoded, elapsed_ms=elapsed_ms)

    except EvaluationError as e:
        report.update(
            state=EvaluationState.FAULTED.value,
            error_kind=e.kind.value,
            error=str(e),
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        )
    except BaseException as e:  # noqa: BLE001 - anything the submission raises is reported
        phase = "loading" if state == EvaluationState.LOADING else "running"
        report.update(
            state=EvaluationState.FAULTED.value,
            error_kind=RuntimeFault.kind.value,
            error=f"Error while {phase} submission: {_format_error(e)}",
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        )
        traceback.print_exc(file=captured_stderr)

    report["stdout"] = captured_stdout.getvalue()[:max_output_bytes]
    report["stderr"] = captured_stderr.getvalue()[:max_output_bytes]
    conn.send(report)
    conn.close()


def _reap(process) -> None:
    """Make sure the child is gone."""
    if process.is_alive():
        process.terminate()
        process.join(timeout=0.5)
        if process.is_alive():
            process.kill()
    process.join()


class SandboxEvaluator:
    """
    Evaluates untrusted Python code in an isolated child process.

    Usage:
        evaluator = SandboxEvaluator()
        result = evaluator.evaluate(
            "def solution(arr):\\n    return arr[::-1]",
            input_value=[1, 2, 3],
            time_limit_ms=1000,
        )
        result.value  # [3, 2, 1]

    ``evaluate`` always returns an ExecutionResult; failures of the
    submission are reported in it, never raised.
    """

    def __init__(
        self,
        default_time_limit_ms: int = EVAL_TIME_LIMIT_MS,
        max_time_limit_ms: int = EVAL_MAX_TIME_LIMIT_MS,
        memory_mb: int = SANDBOX_MEMORY_MB,
        max_output_bytes: int = SANDBOX_MAX_OUTPUT_BYTES,
        startup_timeout_seconds: float = SANDBOX_STARTUP_TIMEOUT_SECONDS,
        validate: bool = True,
    ):
        self.default_time_limit_ms = default_time_limit_ms
        self.max_time_limit_ms = max_time_limit_ms
        self.memory_mb = memory_mb
        self.max_output_bytes = max_output_bytes
        self.startup_timeout_seconds = startup_timeout_seconds
        self.validate = validate
        self.validator = CodeValidator()

    def evaluate(
        self,
        source_text: str,
        entry_point_name: Optional[str] = None,
        input_value: Any = None,
        time_limit_ms: Optional[int] = None,
    ) -> ExecutionResult:
        """
        Load source_text, call its entry point with input_value, return the outcome.

        Args:
            source_text: Python code defining the entry point
            entry_point_name: Function to call; inferred from the first
                top-level ``def`` when omitted
            input_value: Sole argument passed to the entry point
            time_limit_ms: Wall-clock bound for loading plus invocation

        Returns:
            ExecutionResult in state completed, timed_out or faulted

        Raises:
            ValueError: time_limit_ms is not positive
        """
        time_limit_ms = self._resolve_time_limit(time_limit_ms)

        try:
            name = resolve_entry_point(source_text, entry_point_name)
        except EntryPointNotFound as e:
            logger.info("Submission rejected: %s", e)
            return ExecutionResult.from_error(e)

        if self.validate:
            try:
                self.validator.validate_or_raise(source_text)
            except ValidationError as e:
                logger.info("Submission failed validation: %s", "; ".join(e.violations))
                return ExecutionResult.from_error(RuntimeFault(str(e)), entry_point_name=name)

        result = self._run_isolated(source_text, name, input_value, time_limit_ms)
        logger.info(
            "Evaluated entry point %r: %s in %dms",
            name, result.state.value, result.elapsed_ms,
        )
        return result

    def evaluate_submission(
        self,
        submission: CodeSubmission,
        time_limit_ms: Optional[int] = None,
    ) -> ExecutionResult:
        """Evaluate a CodeSubmission record."""
        return self.evaluate(
            submission.source_text,
            entry_point_name=submission.entry_point_name,
            input_value=submission.input,
            time_limit_ms=time_limit_ms,
        )

    def _resolve_time_limit(self, time_limit_ms: Optional[int]) -> int:
        if time_limit_ms is None:
            time_limit_ms = self.default_time_limit_ms
        if time_limit_ms <= 0:
            raise ValueError(f"time_limit_ms must be positive, got {time_limit_ms}")
        if time_limit_ms > self.max_time_limit_ms:
            logger.debug("Clamping time limit %dms to %dms", time_limit_ms, self.max_time_limit_ms)
            time_limit_ms = self.max_time_limit_ms
        return time_limit_ms

    def _run_isolated(
        self,
        source_text: str,
        entry_point_name: str,
        input_value: Any,
        time_limit_ms: int,
    ) -> ExecutionResult:
        # Spawn is safer than fork in threaded environments (FastAPI/uvicorn)
        ctx = multiprocessing.get_context('spawn')
        receiver, sender = ctx.Pipe(duplex=False)
        cpu_seconds = -(-time_limit_ms // 1000) + 1

        process = ctx.Process(
            target=_run_in_sandbox,
            args=(
                source_text,
                entry_point_name,
                input_value,
                cpu_seconds,
                self.memory_mb,
                self.max_output_bytes,
                frozenset(self.validator.allowed_modules),
                sender,
            ),
            daemon=True,
        )

        try:
            process.start()
        except OSError as e:
            logger.warning("Could not start sandbox process: %s", e)
            sender.close()
            receiver.close()
            return ExecutionResult.from_error(
                RuntimeFault(f"Sandbox failed to start: {e}"), entry_point_name=entry_point_name,
            )

        sender.close()
        try:
            return self._collect(process, receiver, entry_point_name, time_limit_ms)
        finally:
            receiver.close()
            _reap(process)

    def _collect(self, process, receiver, entry_point_name: str, time_limit_ms: int) -> ExecutionResult:
        if not receiver.poll(self.startup_timeout_seconds):
            logger.warning("Sandbox process did not start within %.1fs", self.startup_timeout_seconds)
            return ExecutionResult.from_error(
                RuntimeFault("Sandbox failed to start"), entry_point_name=entry_point_name,
            )
        try:
            ready = receiver.recv()
        except EOFError:
            return self._process_died(process, entry_point_name, 0)

        for warning in ready.get("warnings", []):
            logger.warning("Could not set sandbox resource limit %s", warning)

        started = time.monotonic()
        if not receiver.poll(time_limit_ms / 1000):
            return ExecutionResult.from_error(
                EvaluationTimeout(f"Execution timeout ({time_limit_ms}ms)"),
                elapsed_ms=time_limit_ms,
                entry_point_name=entry_point_name,
            )
        try:
            report = receiver.recv()
        except EOFError:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            return self._process_died(process, entry_point_name, elapsed_ms)

        return self._to_result(report, time_limit_ms)

    def _process_died(self, process, entry_point_name: str, elapsed_ms: int) -> ExecutionResult:
        process.join(timeout=1)
        exitcode = process.exitcode
        # SIGXCPU at the soft CPU limit, SIGKILL at the hard one
        if exitcode in (-signal.SIGXCPU, -signal.SIGKILL):
            error: EvaluationError = EvaluationTimeout("Execution exceeded CPU time limit")
        else:
            logger.warning("Sandbox process exited without a result (exit code %s)", exitcode)
            error = RuntimeFault(f"Sandbox process exited unexpectedly (exit code {exitcode})")
        return ExecutionResult.from_error(error, elapsed_ms=elapsed_ms, entry_point_name=entry_point_name)

    def _to_result(self, report: Dict[str, Any], time_limit_ms: int) -> ExecutionResult:
        extra = {
            "stdout": report.get("stdout", ""),
            "stderr": report.get("stderr", ""),
            "entry_point_name": report.get("entry_point"),
        }
        elapsed_ms = report.get("elapsed_ms", 0)

        if report.get("state") == EvaluationState.COMPLETED.value:
            return ExecutionResult.completed(
                json.loads(report["value"]), elapsed_ms, time_limit_ms, **extra,
            )

        if report.get("error_kind") == EntryPointNotFound.kind.value:
            error: EvaluationError = EntryPointNotFound(report.get("error"))
        else:
            error = RuntimeFault(report.get("error"))
        return ExecutionResult.from_error(error, elapsed_ms=elapsed_ms, **extra)
