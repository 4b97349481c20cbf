"""Fan-out of entity changes to the ``updates`` channel group."""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from .consumers import UPDATES_GROUP

logger = logging.getLogger(__name__)


def _send(event: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)
    except Exception:
        # Realtime delivery is best effort; the write already committed
        logger.warning('broadcast of %s %s failed', event.get('entity'), event.get('id'), exc_info=True)


def broadcast_update(entity: str, pk, status: str | None = None, **extra) -> None:
    """Queue an ``entity.update`` event to go out once the current transaction commits."""
    event = {
        'type': 'entity.update',
        'entity': entity,
        'id': pk,
        'status': status,
        'ts': timezone.now().isoformat(),
        **extra,
    }
    transaction.on_commit(lambda: _send(event))
