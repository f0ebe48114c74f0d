"""
Grouping by Person

Loans and land activities are grouped by name. The key is an exact,
case-sensitive match: "Ravi" and "ravi" are two people.

Groups come out in order of first appearance, members in input order.
"""

from typing import Iterable, Union

from ledgerbook.models.ledger import (
    ActivityGroupSummary,
    GroupSettlement,
    LandActivity,
    LoanGroupSummary,
    LoanTransaction,
    TransactionKind,
)


def aggregate_loans_by_name(
    transactions: Iterable[LoanTransaction],
    use_current_amount: bool = False,
) -> dict[str, LoanGroupSummary]:
    """
    Group loans by counterparty with given/taken totals.

    Args:
        transactions: Loans in display order
        use_current_amount: Sum the accrued amount instead of the principal
            (what the ledger shows after an update)
    """
    groups: dict[str, LoanGroupSummary] = {}

    for transaction in transactions:
        key = transaction.counterparty_name
        if key not in groups:
            groups[key] = LoanGroupSummary(name=key)
        group = groups[key]

        amount = (
            transaction.current_accrued_amount
            if use_current_amount
            else transaction.principal
        )

        group.transactions.append(transaction)
        if transaction.kind == TransactionKind.GIVEN:
            group.total_given += amount
        else:
            group.total_taken += amount

    return groups


def aggregate_activities_by_name(
    activities: Iterable[LandActivity],
) -> dict[str, ActivityGroupSummary]:
    """Group land activities by owner with the summed total."""
    groups: dict[str, ActivityGroupSummary] = {}

    for activity in activities:
        key = activity.owner_name
        if key not in groups:
            groups[key] = ActivityGroupSummary(name=key)
        group = groups[key]
        group.activities.append(activity)
        group.total_amount += activity.total_amount

    return groups


def aggregate_by_name(
    items: Iterable[Union[LoanTransaction, LandActivity]],
    use_current_amount: bool = False,
) -> Union[dict[str, LoanGroupSummary], dict[str, ActivityGroupSummary]]:
    """
    Group loans or land activities by name.

    The kind of summary follows the kind of item. Mixing loans and
    activities in one call is a TypeError.
    """
    items = list(items)
    if not items:
        return {}

    if all(isinstance(item, LoanTransaction) for item in items):
        return aggregate_loans_by_name(items, use_current_amount=use_current_amount)
    if all(isinstance(item, LandActivity) for item in items):
        return aggregate_activities_by_name(items)

    raise TypeError("aggregate_by_name expects only loans or only land activities")


def merge_group_settlements(
    summaries: dict[str, ActivityGroupSummary],
    groups: Iterable[GroupSettlement],
) -> list[ActivityGroupSummary]:
    """
    Attach each owner's settlement state to their activity summary.

    Totals stay the live activity sum. A group with payments but no
    remaining activities is still listed (after the others) so the money
    received does not disappear from view.
    """
    merged = {name: summary.model_copy() for name, summary in summaries.items()}

    for group in groups:
        summary = merged.get(group.group_name)
        if summary is None:
            summary = ActivityGroupSummary(name=group.group_name)
            merged[group.group_name] = summary
        summary.group_id = group.id
        summary.settled_amount = group.settled_amount
        summary.settlements = list(group.settlements)

    return list(merged.values())
