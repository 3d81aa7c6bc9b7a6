from typing import List, Optional

from django.utils import timezone

from apps.quotes.models import NegotiationEntry


class NegotiationHistoryStore:
    """
    Append-only audit log of negotiation actions.

    Appends never look at the quote's state; the engine decides whether an
    action is allowed before it records it.
    """

    @staticmethod
    def append(
        quote,
        action: str,
        actor: str,
        previous_price=None,
        new_price=None,
        message: str = "",
        metadata: Optional[dict] = None,
        timestamp=None,
    ) -> NegotiationEntry:
        return NegotiationEntry.objects.create(
            quote=quote,
            action=action,
            actor=actor,
            previous_price=previous_price,
            new_price=new_price,
            message=message or "",
            metadata=metadata or {},
            timestamp=timestamp or timezone.now(),
        )

    @staticmethod
    def list_by_quote(quote_id) -> List[NegotiationEntry]:
        """Entries oldest first. Each call reads the store again."""
        return list(
            NegotiationEntry.objects.filter(quote_id=quote_id).order_by(
                "timestamp", "id"
            )
        )
