"""
Sample data for offline/demo mode.

Seeded into a fresh InMemoryDocumentStore when no Google Sheets store is
configured. The balances already include the sample transactions.
"""

from datetime import timedelta
from decimal import Decimal

from zenfinance.models.finance import TransactionType, utc_now
from zenfinance.services.storage.interface import DocumentStoreInterface, EntityKind


DEMO_ACCOUNTS = [
    {
        "key": "salary",
        "name": "Salary account",
        "institution": "Cathay United Bank",
        "balance": Decimal("52000"),
        "color": "#3b82f6",
    },
    {
        "key": "savings",
        "name": "Digital savings",
        "institution": "Taishin Richart",
        "balance": Decimal("128000"),
        "color": "#10b981",
    },
]

# (account key, amount, kind, category, note, hours ago)
DEMO_TRANSACTIONS = [
    ("salary", Decimal("150"), TransactionType.EXPENSE, "Transport", "Metro", 48),
    ("savings", Decimal("50000"), TransactionType.INCOME, "Salary", "December salary", 24),
    ("salary", Decimal("3500"), TransactionType.EXPENSE, "Food", "Dinner with friends", 1),
]


async def seed_demo_data(store: DocumentStoreInterface, owner_id: str) -> None:
    """Write the sample accounts and transactions for one owner."""
    now = utc_now()
    account_ids: dict[str, str] = {}

    for account in DEMO_ACCOUNTS:
        document = await store.create_document(EntityKind.ACCOUNTS, {
            "owner_id": owner_id,
            "name": account["name"],
            "institution": account["institution"],
            "balance": str(account["balance"]),
            "color": account["color"],
            "created_at": now.isoformat(),
        })
        account_ids[account["key"]] = document["id"]

    # Oldest first, so insertion order matches occurrence order
    for key, amount, kind, category, note, hours_ago in DEMO_TRANSACTIONS:
        await store.create_document(EntityKind.TRANSACTIONS, {
            "owner_id": owner_id,
            "account_id": account_ids[key],
            "amount": str(amount),
            "kind": kind.value,
            "category": category,
            "note": note,
            "occurred_at": (now - timedelta(hours=hours_ago)).isoformat(),
        })
