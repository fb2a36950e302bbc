"""Suggestion application for cadenceplan.

Applies the task mutations of accepted suggestions against a schedule store.

Contract:
- An action whose task no longer exists is skipped, not an error. Suggestions
  lag behind schedule edits and are regenerated often.
- `success` stays True even when nothing was applied; the summary says so.
- A write rejected by the store stops the suggestion and is reported as a
  failure, since consistency past that point cannot be guaranteed.
- Batches are sequential and not transactional.
"""

import logging
from datetime import timedelta
from typing import Sequence

from cadenceplan.engine.impact import get_suggestion_by_id
from cadenceplan.models.suggestion import (
    ActionType,
    ApplyResult,
    BatchApplyResult,
    RebalancingAction,
    RebalancingSuggestion,
)
from cadenceplan.store import ScheduleStore, StoreWriteError, TaskNotFoundError

logger = logging.getLogger(__name__)


class SuggestionApplier:
    """Executes suggestion actions against a store, one application at a time."""

    def __init__(self, store: ScheduleStore):
        self.store = store

    def _apply_action(self, action: RebalancingAction) -> bool:
        """Apply one action. Returns False when it was skipped."""
        task = self.store.get_task(action.task_id)
        if task is None:
            logger.warning(f"Skipping {action.type} for task {action.task_id}: task no longer exists")
            return False

        if action.type in (ActionType.MOVE_TASK, ActionType.RESCHEDULE):
            if action.proposed_schedule is None:
                return False
            self.store.update_task(
                task.id,
                {
                    "scheduled_start": action.proposed_schedule.start,
                    "scheduled_end": action.proposed_schedule.end,
                },
            )
            return True

        if action.type == ActionType.REDUCE_SCOPE:
            if action.proposed_schedule is None:
                return self.store.delete_task(task.id)
            hours = action.proposed_schedule.hours
            self.store.update_task(
                task.id,
                {
                    "estimated_hours": hours,
                    "scheduled_end": task.scheduled_start + timedelta(hours=hours),
                },
            )
            return True

        return False

    def apply_suggestion(self, suggestion: RebalancingSuggestion) -> ApplyResult:
        """Apply every action of one suggestion.

        Args:
            suggestion: Suggestion generated from an earlier snapshot

        Returns:
            ApplyResult with the number of applied actions
        """
        total = len(suggestion.actions)
        applied = 0

        with self.store.lock:
            for action in suggestion.actions:
                try:
                    if self._apply_action(action):
                        applied += 1
                except TaskNotFoundError:
                    logger.warning(f"Skipping {action.type} for task {action.task_id}: deleted during apply")
                except StoreWriteError as e:
                    logger.error(
                        f"Failed to apply suggestion {suggestion.id} at task {action.task_id}: "
                        f"{type(e).__name__}: {str(e)}"
                    )
                    return ApplyResult(
                        success=False,
                        summary=f"Failed to apply suggestion after {applied} of {total} changes",
                        applied_count=applied,
                        total_actions=total,
                        error=str(e),
                    )

        logger.info(f"Applied {applied} of {total} actions of suggestion {suggestion.id}")
        return ApplyResult(
            success=True,
            summary=f"Applied {applied} of {total} suggested changes",
            applied_count=applied,
            total_actions=total,
        )

    def apply_multiple_suggestions(
        self,
        suggestion_ids: Sequence[str],
        suggestions: Sequence[RebalancingSuggestion],
    ) -> BatchApplyResult:
        """Apply suggestions in list order. Earlier ones are never rolled back."""
        result = BatchApplyResult()

        for suggestion_id in suggestion_ids:
            suggestion = get_suggestion_by_id(suggestions, suggestion_id)
            if suggestion is None:
                result.failed_count += 1
                result.errors.append(f"Suggestion {suggestion_id} not found")
                continue

            outcome = self.apply_suggestion(suggestion)
            if outcome.success:
                result.applied_count += 1
                result.summaries.append(outcome.summary)
            else:
                result.failed_count += 1
                result.errors.append(outcome.error or outcome.summary)

        result.success = result.failed_count == 0
        return result
