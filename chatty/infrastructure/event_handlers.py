# chatty/infrastructure/event_handlers.py
import logging
from typing import Any

from chatty.domain.events import Event, GroupCreated, MessageCreated
from chatty.domain.interfaces import AbstractPubSub
from chatty.gateways.group_gateway import GroupGateway
from chatty.gateways.user_gateway import UserGateway
from chatty.infrastructure.database import Database
from chatty.infrastructure.push_client import PushNotificationClient
from chatty.infrastructure.uow import UnitOfWork


class EventHandlers:
    def __init__(
        self,
        pubsub: AbstractPubSub,
        database: Database | None = None,
        push_client: PushNotificationClient | None = None,
        logger: logging.Logger | None = None,
    ):
        self.pubsub = pubsub
        self.database = database
        self.push_client = push_client
        self.logger = logger or logging.getLogger(__name__)

    async def publish_event(self, event: Event):
        await self.pubsub.publish(event.topic, event)
        self.logger.debug(f"Published {event.topic.value}")

    async def publish_message_created(self, event: MessageCreated):
        await self.publish_event(event)

    async def publish_group_created(self, event: GroupCreated):
        await self.publish_event(event)

    async def notify_message_created(self, event: MessageCreated):
        if self.push_client is None or self.database is None:
            return

        async with self.database.session() as session:
            uow = UnitOfWork(session)
            group = await GroupGateway(session, uow).get_group(event.group_id)
            if group is None:
                return
            recipient_ids = [
                member.id
                for member in group._model.members
                if member.id != event.message.user_id
            ]
            recipients = await UserGateway(session, uow).bump_badge_counts(
                recipient_ids
            )

        for recipient in recipients:
            self.push_client.send_in_background(
                self.build_message_notification(
                    event, group.name, recipient.registration_id, recipient.badge_count
                )
            )

    @staticmethod
    def build_message_notification(
        event: MessageCreated, group_name: str, registration_id: str, badge_count: int
    ) -> dict[str, Any]:
        title = f"{event.message.user.username} @ {group_name}"
        return {
            "to": registration_id,
            "priority": "high",
            "notification": {
                "title": title,
                "body": event.message.text,
                "sound": "default",
                "badge": badge_count,
                "click_action": "openGroup",
            },
            "data": {
                "type": "MESSAGE_ADDED",
                "title": title,
                "body": event.message.text,
                "group": {"id": event.group_id, "name": group_name},
            },
        }
