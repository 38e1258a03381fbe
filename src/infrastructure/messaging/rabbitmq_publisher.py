"""
RabbitMQ lifecycle event publisher.

Uses pika in a thread-pool executor so blocking I/O doesn't stall the
asyncio event loop. A new connection is opened per publish call.
"""
import asyncio
import json
from functools import partial

import pika
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import (
    DomainEvent,
    ListingCreatedEvent,
    ListingStateChangedEvent,
    MediaReleasedEvent,
)

logger = structlog.get_logger(__name__)

EXCHANGE_NAME = "marketplace.events"


def event_to_routing_key(event: DomainEvent) -> str:
    if isinstance(event, ListingStateChangedEvent):
        return f"listing.state.{event.to_state.value.lower()}"
    if isinstance(event, ListingCreatedEvent):
        return "listing.created"
    if isinstance(event, MediaReleasedEvent):
        return "media.released" if not event.failed_cids else "media.release_failed"
    return "event.unknown"


def serialise_event(event: DomainEvent) -> str:
    payload: dict = {  # type: ignore[type-arg]
        "event_type": event_to_routing_key(event),
        "event_id": str(event.event_id),
        "occurred_at": event.occurred_at.isoformat(),
    }

    if isinstance(event, ListingStateChangedEvent):
        payload.update(
            {
                "listing_id": event.listing_id,
                "event": event.event.value,
                "from_state": event.from_state.value,
                "to_state": event.to_state.value,
                "triggered_by": event.triggered_by,
                "transaction_hash": event.transaction_hash,
            }
        )
    elif isinstance(event, ListingCreatedEvent):
        payload.update(
            {
                "seller": event.seller,
                "title": event.title,
                "price": event.price,
                "media_ref": event.media_ref,
                "transaction_hash": event.transaction_hash,
            }
        )
    elif isinstance(event, MediaReleasedEvent):
        payload.update(
            {
                "manifest_address": event.manifest_address,
                "released_cids": list(event.released_cids),
                "failed_cids": list(event.failed_cids),
            }
        )

    return json.dumps(payload, default=str)


def _blocking_publish(rabbitmq_url: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(
            exchange=EXCHANGE_NAME, exchange_type="topic", durable=True
        )
        channel.basic_publish(
            exchange=EXCHANGE_NAME,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


class RabbitMQPublisher(EventPublisher):
    """Publishes lifecycle events to a RabbitMQ topic exchange."""

    def __init__(self, rabbitmq_url: str) -> None:
        self._url = rabbitmq_url

    async def publish(self, event: DomainEvent) -> None:
        routing_key = event_to_routing_key(event)
        body = serialise_event(event)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(_blocking_publish, self._url, routing_key, body),
            )
            logger.debug("event_published", routing_key=routing_key, event_id=str(event.event_id))
        except Exception as exc:
            # The ledger has already committed; a lost event must not fail the caller.
            logger.error(
                "failed_to_publish_event",
                routing_key=routing_key,
                error=str(exc),
            )
