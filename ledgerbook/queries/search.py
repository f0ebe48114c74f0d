"""
Name Search

Searches the name field of loans and land activities. Only real stored
documents are returned; an empty list means nothing matched.

Short queries return nothing without touching the store, so typing the
first letters of a name does not list the whole ledger.
"""

from typing import Optional

from ledgerbook.audit import AuditLogger
from ledgerbook.config import get_settings
from ledgerbook.models.ledger import (
    LandActivity,
    LoanTransaction,
    SearchHit,
    SearchHitKind,
)
from ledgerbook.services.storage import (
    LandActivityCollection,
    LoanCollection,
    StorageError,
)


class LedgerSearch:
    """Searches loans, then land activities, by name."""

    def __init__(
        self,
        loans: LoanCollection,
        land_activities: LandActivityCollection,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._loans = loans
        self._land_activities = land_activities
        self._audit = audit_logger or AuditLogger()
        self._min_chars = get_settings().app.search_min_chars

    async def search(self, text: str) -> list[SearchHit]:
        """
        Find documents whose name contains `text` (case-insensitive).

        Loans come first, then land activities, each newest first.
        """
        if len(text) < self._min_chars:
            return []

        try:
            loans = await self._loans.list_all(name_search=text)
            activities = await self._land_activities.list_all(name_search=text)
        except StorageError as e:
            await self._audit.log_store_error(
                operation="search",
                collection=f"{self._loans.name},{self._land_activities.name}",
                error_message=str(e),
            )
            raise

        return (
            [self._loan_hit(loan) for loan in loans]
            + [self._land_hit(activity) for activity in activities]
        )

    def _loan_hit(self, loan: LoanTransaction) -> SearchHit:
        return SearchHit(
            kind=SearchHitKind.LOAN,
            document_id=loan.id,
            name=loan.counterparty_name,
            label=f"Amount: ₹{loan.principal}",
        )

    def _land_hit(self, activity: LandActivity) -> SearchHit:
        return SearchHit(
            kind=SearchHitKind.LAND,
            document_id=activity.id,
            name=activity.owner_name,
            label=f"Land activity: {activity.land_name}",
        )
