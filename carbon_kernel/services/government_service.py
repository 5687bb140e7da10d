"""
GovernmentService -- ledger bootstrap and administrative capability checks.

Responsibility:
    Writes the singleton GovernmentProfile and answers "is the caller the
    government?" for administrative operations (project approval, credit
    issuance, auction creation).

Invariants enforced:
    - When a government identity is configured, only that identity may
      initialize the ledger.
    - Once initialized, only the recorded administrator may re-initialize
      (overwriting the profile); the admin role cannot be taken over by
      re-running initialization.

Failure modes:
    - UnauthorizedCallerError when the caller lacks the capability.
    - NotInitializedError when an administrative operation runs before
      initialization.
"""

from __future__ import annotations

from carbon_kernel.domain.records import GOVERNMENT_KEY, GovernmentProfile
from carbon_kernel.exceptions import NotInitializedError, UnauthorizedCallerError
from carbon_kernel.logging_config import get_logger
from carbon_kernel.services.base import MarketService

logger = get_logger("services.government")


class GovernmentService(MarketService):

    def get_profile(self) -> GovernmentProfile | None:
        return self._read(GovernmentProfile, GOVERNMENT_KEY)

    def initialize(
        self,
        government_name: str,
        country: str,
        dept_name: str,
    ) -> GovernmentProfile:
        """
        Write the government profile with the caller as administrator.

        Raises:
            UnauthorizedCallerError: If the caller is not the configured
                government identity, or a profile already exists and the
                caller is not its administrator.
        """
        caller = self.ctx.caller
        configured = self.ctx.government_identity
        if configured is not None and caller != configured:
            raise UnauthorizedCallerError(caller, "initialize the ledger")

        existing = self.get_profile()
        if existing is not None and existing.government_address != caller:
            raise UnauthorizedCallerError(caller, "re-initialize the ledger")

        profile = GovernmentProfile(
            government_address=caller,
            government_name=government_name,
            country=country,
            dept_name=dept_name,
        )
        self._write(GOVERNMENT_KEY, profile)
        logger.info(
            "ledger_initialized",
            extra={
                "government_address": caller,
                "government_name": government_name,
                "country": country,
                "overwrote_existing": existing is not None,
            },
        )
        return profile

    def require_government(self, operation: str) -> GovernmentProfile:
        """
        Assert the caller is the government administrator.

        Raises:
            NotInitializedError: If no profile exists.
            UnauthorizedCallerError: If the caller is someone else.
        """
        profile = self.get_profile()
        if profile is None:
            raise NotInitializedError()
        caller = self.ctx.caller
        if caller != profile.government_address:
            logger.warning(
                "unauthorized_caller",
                extra={"caller": caller, "operation": operation},
            )
            raise UnauthorizedCallerError(caller, operation)
        return profile
