"""
Typed Exception Hierarchy for the WageStream kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection in a payout system has to be distinguishable by type, not by
message text.  The dispatch layer maps these to API responses, the CLI maps
them to exit messages, and tests assert on them directly.

Each exception:
  1. Is a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (employee, amounts, balances)

Example:
    try:
        service.sweep("emp-1")
    except InsufficientContractBalanceError as e:
        notify_employer(required=e.required, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WageStreamError (base)
    |
    +-- ConfigurationError
    |   +-- AlreadyInitializedError
    |   +-- TokenNotConfiguredError
    |
    +-- ValidationError
    |   +-- InvalidWageRateError
    |   +-- InvalidWagePeriodError
    |   +-- InvalidAmountError
    |   +-- InvalidEmployeeError
    |
    +-- EmployeeError
    |   +-- EmployeeNotFoundError
    |   +-- EmployeeAlreadyExistsError
    |   +-- CannotRemoveActiveEmployeeError
    |
    +-- AuthorizationError
    |   +-- NotAuthorizedError
    |       +-- NotInitializedError
    |
    +-- SettlementError
    |   +-- WithdrawalExceedsAccruedError
    |   +-- NothingToWithdrawError
    |   +-- InsufficientContractBalanceError
    |   +-- InsufficientFundsError
    |
    +-- ArithmeticOverflowError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                           | When Raised
----------------|--------------------------------|------------------------------------
Configuration   | ALREADY_INITIALIZED            | init called twice
                | TOKEN_NOT_CONFIGURED           | pool token reference missing
----------------|--------------------------------|------------------------------------
Validation      | INVALID_WAGE_RATE              | rate <= 0
                | INVALID_WAGE_PERIOD            | unknown wage period value
                | INVALID_AMOUNT                 | amount <= 0
----------------|--------------------------------|------------------------------------
Employee        | EMPLOYEE_NOT_FOUND             | no record for identifier
                | EMPLOYEE_ALREADY_EXISTS        | hire of an existing identifier
                | CANNOT_REMOVE_ACTIVE_EMPLOYEE  | remove while active or owed
----------------|--------------------------------|------------------------------------
Authorization   | NOT_AUTHORIZED                 | caller did not authorize
                | NOT_INITIALIZED                | no employer configured yet
----------------|--------------------------------|------------------------------------
Settlement      | WITHDRAWAL_EXCEEDS_ACCRUED     | amount > accrued + live
                | NOTHING_TO_WITHDRAW            | sweep with zero owed
                | INSUFFICIENT_CONTRACT_BALANCE  | pool cannot cover payout
                | INSUFFICIENT_FUNDS             | ledger transfer overdraw
----------------|--------------------------------|------------------------------------
Arithmetic      | OVERFLOW                       | value left its integer range
----------------|--------------------------------|------------------------------------
Storage         | IMMUTABILITY_VIOLATION         | update/delete of an append-only row

All errors are raised before any state is committed; the invocation scope
rolls back anything written earlier in the same call.
"""


class WageStreamError(Exception):
    """
    Base exception for all WageStream errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WAGESTREAM_ERROR"


# Configuration-related exceptions


class ConfigurationError(WageStreamError):
    """Base exception for contract configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class AlreadyInitializedError(ConfigurationError):
    """The contract already has an employer and token configured."""

    code: str = "ALREADY_INITIALIZED"

    def __init__(self, employer: str):
        self.employer = employer
        super().__init__(f"Already initialized with employer {employer}")


class TokenNotConfiguredError(ConfigurationError):
    """The pool token reference is missing."""

    code: str = "TOKEN_NOT_CONFIGURED"

    def __init__(self):
        super().__init__("Token reference is not configured")


# Validation exceptions


class ValidationError(WageStreamError):
    """Base exception for parameters outside their domain."""

    code: str = "VALIDATION_ERROR"


class InvalidWageRateError(ValidationError):
    """Wage rate must be strictly positive."""

    code: str = "INVALID_WAGE_RATE"

    def __init__(self, wage_rate: int):
        self.wage_rate = wage_rate
        super().__init__(f"Invalid wage rate: {wage_rate} (must be > 0)")


class InvalidWagePeriodError(ValidationError):
    """Wage period is not one of HOUR, DAY, WEEK, MONTH."""

    code: str = "INVALID_WAGE_PERIOD"

    def __init__(self, wage_period: object):
        self.wage_period = wage_period
        super().__init__(f"Invalid wage period: {wage_period!r}")


class InvalidAmountError(ValidationError):
    """Amount must be strictly positive."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: int):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount} (must be > 0)")


class InvalidEmployeeError(ValidationError):
    """Employee id is reserved for a ledger holder the stream pays from."""

    code: str = "INVALID_EMPLOYEE"

    def __init__(self, employee: str, reason: str):
        self.employee = employee
        self.reason = reason
        super().__init__(f"Invalid employee id {employee!r}: {reason}")


# Employee-related exceptions


class EmployeeError(WageStreamError):
    """Base exception for employee record errors."""

    code: str = "EMPLOYEE_ERROR"


class EmployeeNotFoundError(EmployeeError):
    """No record exists for the employee identifier."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee: str):
        self.employee = employee
        super().__init__(f"Employee not found: {employee}")


class EmployeeAlreadyExistsError(EmployeeError):
    """A record already exists for the employee identifier."""

    code: str = "EMPLOYEE_ALREADY_EXISTS"

    def __init__(self, employee: str):
        self.employee = employee
        super().__init__(f"Employee already exists: {employee}")


class CannotRemoveActiveEmployeeError(EmployeeError):
    """
    Removal requires a frozen employee with nothing owed.

    ``reason`` is ``"active"`` when the employee still accrues and
    ``"balance_owed"`` when materialized or live accrual is outstanding.
    """

    code: str = "CANNOT_REMOVE_ACTIVE_EMPLOYEE"

    def __init__(self, employee: str, reason: str, owed: int = 0):
        self.employee = employee
        self.reason = reason
        self.owed = owed
        if reason == "active":
            message = f"Cannot remove employee {employee}: still active"
        else:
            message = f"Cannot remove employee {employee}: {owed} still owed"
        super().__init__(message)


# Authorization exceptions


class AuthorizationError(WageStreamError):
    """Base exception for authorization failures."""

    code: str = "AUTHORIZATION_ERROR"


class NotAuthorizedError(AuthorizationError):
    """The identity did not authorize the current invocation."""

    code: str = "NOT_AUTHORIZED"

    def __init__(self, identity: str | None, operation: str | None = None):
        self.identity = identity
        self.operation = operation
        target = f" for {operation}" if operation else ""
        super().__init__(f"Not authorized{target}: {identity}")


class NotInitializedError(NotAuthorizedError):
    """No employer is configured, so nobody can authorize as employer."""

    code: str = "NOT_INITIALIZED"

    def __init__(self, operation: str | None = None):
        super().__init__(None, operation)
        self.args = (f"Contract not initialized; cannot run {operation or 'operation'}",)


# Settlement exceptions


class SettlementError(WageStreamError):
    """Base exception for payout and withdrawal errors."""

    code: str = "SETTLEMENT_ERROR"


class WithdrawalExceedsAccruedError(SettlementError):
    """Requested amount exceeds materialized plus live accrual."""

    code: str = "WITHDRAWAL_EXCEEDS_ACCRUED"

    def __init__(self, employee: str, requested: int, available: int):
        self.employee = employee
        self.requested = requested
        self.available = available
        super().__init__(
            f"Withdrawal of {requested} exceeds accrued {available} "
            f"for employee {employee}"
        )


class NothingToWithdrawError(SettlementError):
    """Settlement was requested but nothing is owed."""

    code: str = "NOTHING_TO_WITHDRAW"

    def __init__(self, employees: tuple[str, ...] = ()):
        self.employees = employees
        if len(employees) == 1:
            message = f"Nothing to withdraw for employee {employees[0]}"
        else:
            message = f"Nothing to withdraw across {len(employees)} employee(s)"
        super().__init__(message)


class InsufficientContractBalanceError(SettlementError):
    """The fund pool cannot cover the requested payout."""

    code: str = "INSUFFICIENT_CONTRACT_BALANCE"

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient contract balance: required {required}, "
            f"available {available}"
        )


class InsufficientFundsError(SettlementError):
    """A token ledger transfer would overdraw its source holder."""

    code: str = "INSUFFICIENT_FUNDS"

    def __init__(self, holder: str, required: int, available: int):
        self.holder = holder
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds for {holder}: required {required}, "
            f"available {available}"
        )


# Arithmetic


class ArithmeticOverflowError(WageStreamError):
    """An integer operation left its representable range."""

    code: str = "OVERFLOW"

    def __init__(self, operation: str, operands: tuple[int, ...], bits: int):
        self.operation = operation
        self.operands = operands
        self.bits = bits
        rendered = ", ".join(str(o) for o in operands)
        super().__init__(f"Overflow in {operation}({rendered}) for {bits}-bit range")


# Storage


class ImmutabilityViolationError(WageStreamError):
    """Attempted to modify or delete a row of an append-only table."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
