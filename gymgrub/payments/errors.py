"""Payment flow errors.

Creation-time errors map to an HTTP status and are returned to the caller as
``{"error": ..., "details": ...}``. Settlement errors never leave the
status endpoint; the poller turns an exhausted attempt budget into
``PollTimeout``.
"""


class PaymentError(Exception):
    """Base class for payment flow failures."""

    status_code: int = 500
    error: str = "Payment error"

    def __init__(self, details: str | None = None) -> None:
        self.details = details
        super().__init__(details or self.error)

    def to_dict(self) -> dict[str, str | None]:
        return {"error": self.error, "details": self.details}


class InvalidRequest(PaymentError):
    """Required fields are missing or out of range."""

    status_code = 400
    error = "Amount and planId are required"


class Unauthenticated(PaymentError):
    """No caller identity was supplied."""

    status_code = 401
    error = "Unauthorized"


class WalletUnavailable(PaymentError):
    """The wallet CLI is not installed or not executable."""

    status_code = 500
    error = "Lightning wallet is not configured"

    def __init__(self, binary: str, reason: str | None = None) -> None:
        self.binary = binary
        hint = f"Install '{binary}' and make sure it is on PATH, or set WALLET_BINARY."
        super().__init__(f"{reason}. {hint}" if reason else hint)


class InvoiceCreationFailed(PaymentError):
    """The wallet ran but did not produce a usable invoice."""

    status_code = 500
    error = "Failed to create payment invoice"

    def __init__(self, reason: str, raw_output: str = "") -> None:
        self.reason = reason
        self.raw_output = raw_output
        details = f"{reason}: {raw_output.strip()}" if raw_output.strip() else reason
        super().__init__(details)


class SettlementCheckTransient(PaymentError):
    """A status check against the wallet failed; the next poll retries."""

    error = "Settlement check failed"


class PollTimeout(PaymentError):
    """The poller used its whole attempt budget without seeing ``paid``."""

    status_code = 408
    error = "Payment timeout. Please try again."

    def __init__(self, payment_id: str, attempts: int) -> None:
        self.payment_id = payment_id
        self.attempts = attempts
        super().__init__(f"Payment {payment_id} not settled after {attempts} checks")
