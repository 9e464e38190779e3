"""Wizard-style navigation over ordered groups of form fields."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from formflow import logger
from formflow.exceptions import StepError
from formflow.typing.enums import StepStatus
from formflow.typing.models import FormStep, StepValidationResult

if TYPE_CHECKING:
    from formflow.controller import FormController
    from formflow.typing.protocol import SubmitEvent


def build_steps(steps: Sequence[FormStep | Mapping[str, Any]], field_keys: Sequence[str]) -> tuple[FormStep, ...]:
    """Validate step payloads against the keys of a schema.

    Args:
        steps: Step models or payloads, in navigation order.
        field_keys: Keys declared by the governing schema.

    Raises:
        StepError: If there are no steps, ids repeat or a step names an undeclared field.

    Returns:
        tuple[FormStep, ...]: Validated steps.
    """
    if not steps:
        raise StepError(message="At least one step is required")

    built: list[FormStep] = []
    for index, raw in enumerate(steps, start=1):
        try:
            step = raw if isinstance(raw, FormStep) else FormStep.model_validate(dict(raw))
        except ValidationError as exc:
            raise StepError(message=f"Invalid step #{index}: {exc}") from exc
        built.append(step)

    ids = [step.id for step in built]
    duplicates = sorted({step_id for step_id in ids if ids.count(step_id) > 1})
    if duplicates:
        raise StepError(message=f"Duplicate step ids: {', '.join(duplicates)}")

    known = set(field_keys)
    for step in built:
        unknown = [key for key in step.fields if key not in known]
        if unknown:
            raise StepError(message=f"Step '{step.id}' references undeclared fields: {', '.join(unknown)}")
    return tuple(built)


class StepNavigator:
    """Gates forward navigation through steps on step-scoped validation.

    Steps are numbered from 1. Moving back is always allowed. Submitting from
    the last step validates the whole schema, not only the last step.
    """

    def __init__(self, controller: FormController, steps: Sequence[FormStep | Mapping[str, Any]]) -> None:
        self._controller = controller
        self._steps = build_steps(steps, list(controller.schema))
        self._current = 1

    @property
    def controller(self) -> FormController:
        return self._controller

    @property
    def steps(self) -> tuple[FormStep, ...]:
        return self._steps

    @property
    def current_step(self) -> int:
        """Return the 1-based number of the current step."""
        return self._current

    @property
    def current(self) -> FormStep:
        return self._steps[self._current - 1]

    @property
    def is_first_step(self) -> bool:
        return self._current == 1

    @property
    def is_last_step(self) -> bool:
        return self._current == len(self._steps)

    @property
    def progress(self) -> float:
        """Return the share of steps before the current one, between 0 and 1."""
        if len(self._steps) == 1:
            return 0.0
        return (self._current - 1) / (len(self._steps) - 1)

    def step_status(self, number: int) -> StepStatus:
        """Return whether a step is behind, at or ahead of the current one."""
        self._check_number(number)
        if number < self._current:
            return StepStatus.COMPLETED
        if number == self._current:
            return StepStatus.CURRENT
        return StepStatus.PENDING

    def validate_step(self, number: int) -> StepValidationResult:
        """Validate and touch only the fields of one step.

        Args:
            number: 1-based step number.

        Returns:
            StepValidationResult: Step validity with the failing fields and their messages.
        """
        self._check_number(number)
        step = self._steps[number - 1]
        is_valid = self._controller.validate_fields(step.fields)
        states = self._controller.fields
        failing = {key: states[key].errors for key in step.fields if not states[key].is_valid}
        return StepValidationResult(
            step=number,
            is_valid=is_valid,
            missing_fields=tuple(failing),
            errors=failing,
        )

    def next_step(self) -> bool:
        """Advance one step when the current step is valid.

        Returns:
            bool: True when navigation happened. Always False on the last step.
        """
        if self.is_last_step:
            return False
        result = self.validate_step(self._current)
        if not result.is_valid:
            logger.debug(
                "Step navigation blocked",
                extra={"step": self.current.id, "missing_fields": list(result.missing_fields)},
            )
            return False
        self._current += 1
        return True

    def prev_step(self) -> bool:
        """Go back one step. Returns False on the first step."""
        if self.is_first_step:
            return False
        self._current -= 1
        return True

    def go_to_step(self, number: int) -> bool:
        """Jump to a step.

        Going back never validates. Going forward validates every step from the
        current one up to `number - 1`; the first invalid step stops navigation
        and becomes the current step.

        Raises:
            StepError: If `number` is out of range.

        Returns:
            bool: True when the target step was reached.
        """
        self._check_number(number)
        if number <= self._current:
            self._current = number
            return True

        for intermediate in range(self._current, number):
            if not self.validate_step(intermediate).is_valid:
                self._current = intermediate
                return False
        self._current = number
        return True

    async def advance(self, event: SubmitEvent | None = None) -> bool:
        """Move forward, or submit the whole form from the last step.

        Returns:
            bool: Result of `next_step`, or of `handle_submit` on the last step.
        """
        if not self.is_last_step:
            return self.next_step()
        return await self._controller.handle_submit(event)

    def reset(self) -> None:
        """Return to the first step with a pristine form."""
        self._current = 1
        self._controller.reset_form()

    def _check_number(self, number: int) -> None:
        if not 1 <= number <= len(self._steps):
            raise StepError(message=f"Step {number} is out of range 1..{len(self._steps)}")
