"""Typed step results and the try-in-order combinator used by the resolution cascade."""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Tuple, Union

from common.base.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Found:
    value: Any
    step: str = ""


@dataclass(frozen=True)
class Miss:
    step: str = ""


@dataclass(frozen=True)
class Failure:
    """The step could not be answered (network error, timeout, bad response)."""
    reason: str
    step: str = ""


StepResult = Union[Found, Miss, Failure]
Step = Tuple[str, Callable[[], StepResult]]


def first_success(steps: Iterable[Step]) -> StepResult:
    """
    Run steps in order and stop at the first Found.

    Steps are produced lazily, so later steps are never built once one
    succeeds. When nothing is found the result is a Failure only if every
    step that ran failed; any ordinary miss makes the overall result a Miss.

    :param steps: (name, thunk) pairs
    :return: The first Found, tagged with its step name, else Miss or Failure
    """
    failure = None
    missed = False
    for name, run in steps:
        result = run()
        if isinstance(result, Found):
            logger.debug(f"Step {name}: found")
            return Found(result.value, result.step or name)
        if isinstance(result, Failure):
            logger.debug(f"Step {name}: failed ({result.reason})")
            failure = failure or Failure(result.reason, name)
        else:
            logger.debug(f"Step {name}: miss")
            missed = True

    if failure is not None and not missed:
        return failure
    return Miss()
