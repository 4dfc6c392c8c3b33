"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP routes, schedulers, scripts) must map engine failures to
responses without parsing message strings.  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        engine.create_cycle("October 2025")
    except DuplicateCycleError as e:
        api_response(409, code=e.code, month_label=e.month_label)
    except EmptyRosterError as e:
        api_response(422, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from PayrollEngineError:

    PayrollEngineError (base)
    |
    +-- CycleError
    |   +-- CycleNotFoundError
    |   +-- DuplicateCycleError
    |   +-- EmptyRosterError
    |   +-- AlreadyArchivedError
    |   +-- ArchivedCycleError
    |
    +-- MonthLabelError
    |   +-- InvalidMonthLabelError
    |
    +-- BonusError
    |   +-- RecipientRequiredError
    |   +-- RecipientNotInCycleError
    |   +-- BonusAmountNotSetError
    |
    +-- ValidationError
    |   +-- NonFiniteValueError
    |   +-- UnknownFieldError
    |   +-- WorkHoursImportError
    |
    +-- RosterError
        +-- ConsultantNotFoundError
        +-- LineItemNotFoundError

All of the above are user-facing (4xx-equivalent).  Storage failures
(``sqlalchemy.exc.*``) are NOT wrapped: they propagate as infrastructure
errors after the owning transaction has been rolled back.

There is deliberately no "missing work hours" error: the payment calculator
always falls back to weekday_count x hours_per_weekday.

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|------------------------------------------
Cycle        | CYCLE_NOT_FOUND           | Cycle ID doesn't exist
             | DUPLICATE_CYCLE           | Active cycle already uses the month label
             | EMPTY_ROSTER              | No active consultants at creation time
             | ALREADY_ARCHIVED          | Archive requested twice
             | ARCHIVED_CYCLE            | Edit attempted on an archived cycle
-------------|---------------------------|------------------------------------------
Month label  | INVALID_MONTH_LABEL       | Month arithmetic on an unparseable label
-------------|---------------------------|------------------------------------------
Bonus        | RECIPIENT_REQUIRED        | Announcement with no resolvable recipient
             | RECIPIENT_NOT_IN_CYCLE    | Recipient has no line item in the cycle
             | BONUS_AMOUNT_NOT_SET      | Announcement with no positive bonus amount
-------------|---------------------------|------------------------------------------
Validation   | NON_FINITE_VALUE          | NaN / Infinity in a monetary/hours field
             | UNKNOWN_FIELD             | Update names a field that is not editable
             | WORK_HOURS_IMPORT_INVALID | Malformed work-hours import payload
-------------|---------------------------|------------------------------------------
Roster       | CONSULTANT_NOT_FOUND      | Consultant ID doesn't exist
             | LINE_ITEM_NOT_FOUND       | Line item ID doesn't exist
"""


class PayrollEngineError(Exception):
    """
    Base exception for all payroll engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_ENGINE_ERROR"


# Cycle lifecycle exceptions


class CycleError(PayrollEngineError):
    """Base exception for payroll cycle errors."""

    code: str = "CYCLE_ERROR"


class CycleNotFoundError(CycleError):
    """Payroll cycle with given ID was not found."""

    code: str = "CYCLE_NOT_FOUND"

    def __init__(self, cycle_id: str):
        self.cycle_id = cycle_id
        super().__init__(f"Payroll cycle not found: {cycle_id}")


class DuplicateCycleError(CycleError):
    """An active (non-archived) cycle already uses this month label."""

    code: str = "DUPLICATE_CYCLE"

    def __init__(self, month_label: str, existing_cycle_id: str | None = None):
        self.month_label = month_label
        self.existing_cycle_id = existing_cycle_id
        super().__init__(
            f'An active cycle with month label "{month_label}" already exists. '
            f"Archived cycles may share this label, but reusing it requires "
            f"archiving the conflicting active cycle first."
        )


class EmptyRosterError(CycleError):
    """No active consultants exist, so the cycle would have no line items."""

    code: str = "EMPTY_ROSTER"

    def __init__(self, month_label: str):
        self.month_label = month_label
        super().__init__(
            f'No active consultants found. Cannot create empty cycle "{month_label}".'
        )


class AlreadyArchivedError(CycleError):
    """Cycle was already archived; archival is one-way and happens once."""

    code: str = "ALREADY_ARCHIVED"

    def __init__(self, cycle_id: str, archived_at: str):
        self.cycle_id = cycle_id
        self.archived_at = archived_at
        super().__init__(f"Cycle {cycle_id} is already archived (at {archived_at})")


class ArchivedCycleError(CycleError):
    """Modification attempted on an archived (read-only) cycle."""

    code: str = "ARCHIVED_CYCLE"

    def __init__(self, cycle_id: str, operation: str):
        self.cycle_id = cycle_id
        self.operation = operation
        super().__init__(
            f"Cycle {cycle_id} is archived and read-only; cannot {operation}"
        )


# Month label exceptions


class MonthLabelError(PayrollEngineError):
    """Base exception for month label errors."""

    code: str = "MONTH_LABEL_ERROR"


class InvalidMonthLabelError(MonthLabelError):
    """Month label cannot be parsed where month arithmetic is required."""

    code: str = "INVALID_MONTH_LABEL"

    def __init__(self, month_label: str, expected: str = "<MonthName> <YYYY>"):
        self.month_label = month_label
        self.expected = expected
        super().__init__(
            f'Cannot parse month label "{month_label}"; expected format {expected}'
        )


# Bonus workflow exceptions


class BonusError(PayrollEngineError):
    """Base exception for bonus workflow errors."""

    code: str = "BONUS_ERROR"


class RecipientRequiredError(BonusError):
    """No bonus recipient is stored and none could be inferred."""

    code: str = "RECIPIENT_REQUIRED"

    def __init__(self, cycle_id: str):
        self.cycle_id = cycle_id
        super().__init__(
            f"Cycle {cycle_id} has no bonus recipient. Select which consultant "
            f"will receive the bonus first."
        )


class RecipientNotInCycleError(BonusError):
    """Chosen recipient has no line item in the cycle."""

    code: str = "RECIPIENT_NOT_IN_CYCLE"

    def __init__(self, cycle_id: str, consultant_id: str):
        self.cycle_id = cycle_id
        self.consultant_id = consultant_id
        super().__init__(
            f"Consultant {consultant_id} has no line item in cycle {cycle_id}"
        )


class BonusAmountNotSetError(BonusError):
    """Cycle has no positive bonus amount configured."""

    code: str = "BONUS_AMOUNT_NOT_SET"

    def __init__(self, cycle_id: str):
        self.cycle_id = cycle_id
        super().__init__(
            f"No Omnigo bonus amount configured for cycle {cycle_id}"
        )


# Validation exceptions


class ValidationError(PayrollEngineError):
    """Base exception for input validation errors."""

    code: str = "VALIDATION_ERROR"


class NonFiniteValueError(ValidationError):
    """A monetary or hours field was given NaN or Infinity."""

    code: str = "NON_FINITE_VALUE"

    def __init__(self, field_name: str, value: str):
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"{field_name} must be a finite number (not NaN or Infinity), got {value}"
        )


class UnknownFieldError(ValidationError):
    """Update named a field that does not exist or is not editable."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, entity: str, field_names: list[str]):
        self.entity = entity
        self.field_names = field_names
        super().__init__(
            f"Fields not editable on {entity}: {', '.join(sorted(field_names))}"
        )


class WorkHoursImportError(ValidationError):
    """Work-hours import payload is malformed or out of range."""

    code: str = "WORK_HOURS_IMPORT_INVALID"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid work hours import: {reason}")


# Roster exceptions


class RosterError(PayrollEngineError):
    """Base exception for roster and line item lookups."""

    code: str = "ROSTER_ERROR"


class ConsultantNotFoundError(RosterError):
    """Consultant with given ID was not found."""

    code: str = "CONSULTANT_NOT_FOUND"

    def __init__(self, consultant_id: str):
        self.consultant_id = consultant_id
        super().__init__(f"Consultant not found: {consultant_id}")


class LineItemNotFoundError(RosterError):
    """Cycle line item with given ID was not found."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(f"Line item not found: {line_item_id}")
