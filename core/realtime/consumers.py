import json
from channels.generic.websocket import AsyncWebsocketConsumer

UPDATES_GROUP = "updates"


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Relays entity status changes to connected dashboards."""
    GROUP = UPDATES_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not getattr(user, "is_authenticated", False):
            await self.close(code=4401)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def entity_update(self, event):
        # event: {"type": "entity.update", "entity": "Transfer", "id": 1, "status": "...", "ts": "..."}
        await self.send(json.dumps(event))
