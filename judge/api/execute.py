"""Single-input execution endpoint."""

from fastapi import APIRouter, Depends

from ..sandbox import SandboxEvaluator
from .deps import get_evaluator
from .schemas import ExecuteRequest, ExecuteResponse, ExecutionError

router = APIRouter(prefix="/api", tags=["execute"])


@router.post("/execute", response_model=ExecuteResponse)
def execute(
    request: ExecuteRequest,
    evaluator: SandboxEvaluator = Depends(get_evaluator),
):
    """
    Run the entry point once with the given input.

    Always answers 200; timeouts, missing entry points and runtime errors
    come back in the ``error`` field.
    """
    result = evaluator.evaluate(
        request.source_text,
        entry_point_name=request.entry_point,
        input_value=request.input,
        time_limit_ms=request.time_limit_ms,
    )

    error = None
    if not result.ok:
        error = ExecutionError(kind=result.error_kind.value, message=result.error_message)

    return ExecuteResponse(
        state=result.state.value,
        value=result.value,
        error=error,
        entry_point=result.entry_point_name,
        elapsed_ms=result.elapsed_ms,
        elapsed_within_bound=result.elapsed_within_bound,
        stdout=result.stdout,
    )
