from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from recurring_engine.logger import get_logger
from recurring_engine.models import Transaction

logger = get_logger(__name__)

TransactionLike = Transaction | Mapping[str, Any]


def _summarize_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def parse_transaction(raw: TransactionLike) -> Transaction | None:
    if isinstance(raw, Transaction):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning("[INPUT] Skipping non-mapping transaction record of type %s.", type(raw).__name__)
        return None
    try:
        return Transaction.model_validate(dict(raw))
    except ValidationError as exc:
        logger.warning(
            "[INPUT] Skipping malformed transaction '%s': %s",
            str(raw.get("description", ""))[:50],
            _summarize_errors(exc),
        )
        return None


def coerce_transactions(records: Iterable[TransactionLike]) -> tuple[list[Transaction], int]:
    """Validate raw records, keeping input order.

    Returns the valid transactions and the number of records that were dropped.
    """
    transactions: list[Transaction] = []
    skipped = 0
    for raw in records:
        transaction = parse_transaction(raw)
        if transaction is None:
            skipped += 1
            continue
        transactions.append(transaction)
    if skipped:
        logger.info("[INPUT] Excluded %d malformed transaction(s) of %d.", skipped, skipped + len(transactions))
    return transactions, skipped
