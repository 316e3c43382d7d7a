"""
Goalscape exception hierarchy.

- GoalscapeError: base class for every known failure
- NotFoundError: an operation referenced a node that does not exist
- InvalidOperationError: structurally impossible request (deleting the quest
  root, reordering with a non-permutation, toggling an interior node, ...)
- OutOfRangeError: a value outside its allowed bounds, raised only when
  clamping is disabled in the runtime configuration

Every check runs before the tree is touched, so a raised error always means
the tree is unchanged.
"""
from typing import Optional, Union


class GoalscapeError(Exception):
    """Base class for all Goalscape errors.

    Catching this handles every expected failure of the goal core.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        """
        Args:
            message: what went wrong
            hint: suggestion for the caller on how to proceed
        """
        super().__init__(message)
        self.message = message
        self.hint = hint

    def get_user_message(self) -> str:
        """Return a caller-facing message including the hint."""
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class NotFoundError(GoalscapeError):
    """Raised when a node or parent id is not in the tree."""

    def __init__(self, node_id: str, role: str = "Node"):
        super().__init__(f"{role} not found: {node_id}", hint="Refresh the tree and retry")
        self.node_id = node_id


class InvalidOperationError(GoalscapeError):
    """Raised for requests that cannot be applied to the current tree shape."""


class OutOfRangeError(GoalscapeError):
    """Raised when a numeric field is outside its bounds and clamping is off."""

    def __init__(
        self,
        field_name: str,
        value: Union[int, float],
        low: Optional[int] = None,
        high: Optional[int] = None,
    ):
        if high is None:
            bounds = f">= {low}"
        else:
            bounds = f"{low}..{high}"
        super().__init__(
            f"{field_name} must be {bounds}, got {value}",
            hint="Enable CLAMP_OUT_OF_RANGE to clamp instead of failing",
        )
        self.field_name = field_name
        self.value = value
        self.low = low
        self.high = high
