"""
Pricing outcome taxonomy.

None of these abort a batch. Each one marks a single
(room type, rate plan, date) cell as unavailable.
"""

import enum


class UnavailableReason(str, enum.Enum):
    """Why a price cell is null / a partner date was skipped"""
    MISSING_BASE_PRICE = "MISSING_BASE_PRICE"
    INACTIVE_RATE_PLAN = "INACTIVE_RATE_PLAN"
    OUT_OF_WRITE_WINDOW = "OUT_OF_WRITE_WINDOW"
    INVALID_DERIVATION = "INVALID_DERIVATION"
    UNKNOWN_RATE_PLAN = "UNKNOWN_RATE_PLAN"
    INVALID_PRICE = "INVALID_PRICE"


class InvalidDerivation(ValueError):
    """Raised when a rule cannot produce a non-negative price from STD"""
    pass
