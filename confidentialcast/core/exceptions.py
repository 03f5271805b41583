"""
ConfidentialCast Exception Hierarchy

All exceptions inherit from ConfidentialCastError for easy catching.

Every rejected invocation raises one of the leaf classes below. The
executor rolls back the transaction and re-raises, so callers see the
named failure and the engine state is exactly as it was before the call.
"""


class ConfidentialCastError(Exception):
    """Base exception for all ConfidentialCast errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    @property
    def name(self) -> str:
        """Failure name as reported in logs and CLI output."""
        return type(self).__name__


# ── Categories ────────────────────────────────────────────────

class AuthorizationError(ConfidentialCastError):
    """Raised when the caller may not perform an operation"""
    pass


class RegistryError(ConfidentialCastError):
    """Raised when a reference registry write is rejected"""
    pass


class SubmissionError(ConfidentialCastError):
    """Raised when a forecast submission is rejected"""
    pass


class SettlementError(ConfidentialCastError):
    """Raised when a confirmation is rejected"""
    pass


class VerificationError(ConfidentialCastError):
    """Raised when an encrypted external input fails proof verification"""
    pass


class AccessDeniedError(ConfidentialCastError):
    """Raised when an account decrypts a handle it was never granted"""
    pass


class JournalError(ConfidentialCastError):
    """Raised when the transaction journal is unreadable or tampered"""
    pass


class ConfigError(ConfidentialCastError):
    """Raised when engine configuration is invalid"""
    pass


# ── Authorization ─────────────────────────────────────────────

class OnlyOwner(AuthorizationError):
    """Caller is not the owner"""
    pass


class InvalidOwner(AuthorizationError):
    """New owner is the null account"""
    pass


# ── Reference registry ────────────────────────────────────────

class InvalidPrice(RegistryError):
    """Reference value is zero"""
    pass


class PriceAlreadyUpdated(RegistryError):
    """Current period is not after the last recorded period"""
    pass


# ── Forecast submission ───────────────────────────────────────

class StakeRequired(SubmissionError):
    """Stake is zero"""
    pass


class StakeTooLarge(SubmissionError):
    """Stake does not fit in an unsigned 64-bit integer"""
    pass


class PredictionExists(SubmissionError):
    """Account already has a forecast for this period"""
    pass


# ── Settlement ────────────────────────────────────────────────

class PredictionMissing(SettlementError):
    """No forecast for (account, period)"""
    pass


class PredictionAlreadyClaimed(SettlementError):
    """Forecast was already settled"""
    pass


class ConfirmationTooEarly(SettlementError):
    """Period has not fully elapsed"""
    pass


class PriceNotAvailable(SettlementError):
    """No reference value was recorded for the period"""
    pass
