"""
Payment Verification
====================

The full tier is paid. Verifying a payment belongs to an external
collaborator; the pipeline only asks a PaymentVerifier before any
extraction work starts.
"""

import hmac
import logging
from abc import ABC, abstractmethod
from typing import Iterable

from document_interpreter.errors import PaymentRequiredError
from document_interpreter.models import AnalysisTier

logger = logging.getLogger(__name__)

PAID_TIERS = (AnalysisTier.FULL,)


class PaymentVerifier(ABC):
    """Checks that the caller may use a paid tier."""

    def require(self, tier: AnalysisTier, token: str | None) -> None:
        """
        Raise PaymentRequiredError unless the tier is free or the token is valid.
        """
        if tier not in PAID_TIERS:
            return
        if not self.verify(token):
            logger.info("Payment verification failed for tier %s", tier.value)
            raise PaymentRequiredError("Analiza completă necesită plata.")

    @abstractmethod
    def verify(self, token: str | None) -> bool:
        """Return True if ``token`` proves payment for a paid tier."""


class AllowAllVerifier(PaymentVerifier):
    """Accepts every request. Used when payment is enforced upstream."""

    def verify(self, token: str | None) -> bool:
        return True


class TokenListVerifier(PaymentVerifier):
    """Accepts a fixed set of access tokens (FULL_TIER_ACCESS_TOKENS)."""

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens = tuple(token for token in tokens if token)

    def verify(self, token: str | None) -> bool:
        if not token:
            return False
        candidate = token.encode("utf-8")
        return any(
            hmac.compare_digest(candidate, known.encode("utf-8")) for known in self._tokens
        )
