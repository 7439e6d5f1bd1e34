"""Charge domain exceptions

Raised by the charge state machine and validators. Use cases translate them
into Result errors using the exception's code.
"""


class ChargeError(Exception):
    code = "CHARGE_ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class InvalidChargeData(ChargeError):
    """A supplied field violates a charge invariant"""

    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid charge data: {field} - {reason}",
            code=f"INVALID_{field.upper()}",
        )
        self.field = field
        self.reason = reason


class InvalidChargeTransition(ChargeError):
    """The charge's current status does not allow the requested operation"""

    def __init__(self, code: str, message: str):
        super().__init__(message, code=code)
