"""
Typed Collections

Map ledger models to and from flat store documents. Field names in the
documents follow the hosted schema (camelCase), so a sheet or document
database written by the mobile app stays readable.

Amounts are stored as strings to keep Decimal precision; numbers from
older documents are accepted on the way back in.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from ledgerbook.models.ledger import (
    GroupSettlement,
    LandActivity,
    LoanTransaction,
    SettlementEntry,
)
from ledgerbook.services.storage.interface import (
    CREATED_AT_FIELD,
    Document,
    DocumentStoreInterface,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


def _money(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _iso(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


def _parse_date(value: Any) -> Optional[date]:
    """Dates may be stored as plain ISO dates or full ISO timestamps."""
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


class Collection(Generic[ModelT]):
    """
    Base class for a typed view over one store collection.

    Subclasses supply `to_document` / `from_document`.
    """

    def __init__(self, store: DocumentStoreInterface, name: str):
        self.store = store
        self.name = name

    def to_document(self, item: ModelT) -> dict[str, Any]:
        raise NotImplementedError

    def from_document(self, doc: Document) -> ModelT:
        raise NotImplementedError

    async def list_all(self, name_search: Optional[str] = None) -> list[ModelT]:
        """
        All items, newest first.

        Args:
            name_search: Keep items whose name contains this text
                         (case-insensitive)
        """
        search = ("name", name_search) if name_search else None
        docs = await self.store.list_documents(
            self.name,
            search=search,
            order_by=CREATED_AT_FIELD,
            descending=True,
        )
        return [self.from_document(doc) for doc in docs]

    async def list_for(self, name: str) -> list[ModelT]:
        """Items filed under exactly this name (case-sensitive)."""
        name = name.strip()
        docs = await self.store.list_documents(
            self.name,
            search=("name", name),
            order_by=CREATED_AT_FIELD,
            descending=True,
        )
        return [
            self.from_document(doc) for doc in docs
            if doc.data.get("name") == name
        ]

    async def get(self, document_id: str) -> Optional[ModelT]:
        doc = await self.store.get_document(self.name, document_id)
        return self.from_document(doc) if doc else None

    async def create(self, item: ModelT) -> ModelT:
        doc = await self.store.create_document(self.name, self.to_document(item))
        return self.from_document(doc)

    async def update(self, document_id: str, item: ModelT) -> ModelT:
        doc = await self.store.update_document(
            self.name, document_id, self.to_document(item)
        )
        return self.from_document(doc)

    async def delete(self, document_id: str) -> bool:
        return await self.store.delete_document(self.name, document_id)


class LoanCollection(Collection[LoanTransaction]):
    """Loans given and taken."""

    def to_document(self, item: LoanTransaction) -> dict[str, Any]:
        return {
            "type": item.kind.value,
            "name": item.counterparty_name,
            "amount": _money(item.principal),
            "rateOfInterest": _money(item.interest_rate_percent),
            "initialDate": _iso(item.origin_date),
            "currentAmount": _money(item.current_accrued_amount),
            "daysElapsed": item.elapsed_days,
            "isSettled": item.is_settled,
            "settledDate": _iso(item.settled_date),
            "settlementRemarks": item.settlement_remarks,
            "remarks": item.remarks,
        }

    def from_document(self, doc: Document) -> LoanTransaction:
        data = doc.data
        return LoanTransaction(
            id=doc.id,
            created_at=doc.created_at,
            kind=data["type"],
            counterparty_name=data["name"],
            principal=Decimal(str(data["amount"])),
            interest_rate_percent=Decimal(str(data.get("rateOfInterest") or 0)),
            origin_date=_parse_date(data["initialDate"]),
            current_accrued_amount=(
                Decimal(str(data["currentAmount"]))
                if data.get("currentAmount") not in (None, "")
                else None
            ),
            elapsed_days=int(data.get("daysElapsed") or 0),
            is_settled=bool(data.get("isSettled", False)),
            settled_date=_parse_date(data.get("settledDate")),
            settlement_remarks=data.get("settlementRemarks"),
            remarks=data.get("remarks"),
        )

    async def update_accrual(
        self,
        document_id: str,
        amount: Decimal,
        days: int,
    ) -> LoanTransaction:
        """Write back only the accrual cache fields."""
        doc = await self.store.update_document(
            self.name,
            document_id,
            {"currentAmount": _money(amount), "daysElapsed": days},
        )
        return self.from_document(doc)


class LandActivityCollection(Collection[LandActivity]):
    """Per-acre land work, filed under the owner's name."""

    def to_document(self, item: LandActivity) -> dict[str, Any]:
        return {
            "name": item.owner_name,
            "landName": item.land_name,
            "activity": item.activity_description,
            "date": _iso(item.activity_date),
            "acres": _money(item.area_in_acres),
            "ratePerAcre": _money(item.rate_per_acre),
            # Derived; stored so the sheet is readable on its own
            "totalAmount": _money(item.total_amount),
        }

    def from_document(self, doc: Document) -> LandActivity:
        data = doc.data
        return LandActivity(
            id=doc.id,
            created_at=doc.created_at,
            owner_name=data["name"],
            land_name=data["landName"],
            activity_description=data.get("activity") or "",
            activity_date=_parse_date(data["date"]),
            area_in_acres=Decimal(str(data["acres"])),
            rate_per_acre=Decimal(str(data["ratePerAcre"])),
        )


class GroupSettlementCollection(Collection[GroupSettlement]):
    """One settlement record per land owner."""

    def to_document(self, item: GroupSettlement) -> dict[str, Any]:
        settlements = [
            {
                "date": entry.paid_on.isoformat(),
                "amount": str(entry.amount),
                "remarks": entry.remarks,
            }
            for entry in item.settlements
        ]
        return {
            "name": item.group_name,
            "totalAmount": _money(item.total_amount),
            "settledAmount": _money(item.settled_amount),
            "isSettled": item.is_settled,
            "settlements": json.dumps(settlements),
        }

    def from_document(self, doc: Document) -> GroupSettlement:
        data = doc.data
        raw = data.get("settlements") or "[]"
        entries = json.loads(raw) if isinstance(raw, str) else raw
        return GroupSettlement(
            id=doc.id,
            created_at=doc.created_at,
            group_name=data["name"],
            total_amount=Decimal(str(data.get("totalAmount") or 0)),
            settled_amount=Decimal(str(data.get("settledAmount") or 0)),
            settlements=[
                SettlementEntry(
                    paid_on=_parse_date(entry["date"]),
                    amount=Decimal(str(entry["amount"])),
                    remarks=entry.get("remarks"),
                )
                for entry in entries
            ],
        )

    async def get_by_name(self, name: str) -> Optional[GroupSettlement]:
        """The group for exactly this name, or None (oldest wins on duplicates)."""
        matches = await self.list_for(name)
        return matches[-1] if matches else None
