"""aiomqtt transport for the bridge.

The bridge only needs `publish`, `subscribe` and `connected`; the app
drives `connect`, `disconnect` and `message_loop`.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

import aiomqtt

from ..config import MQTTConfig
from . import topics

logger = logging.getLogger(__name__)

# Called with (topic, raw payload) for every inbound message
MessageCallback = Callable[[str, bytes], Awaitable[None]]


def encode_payload(payload: Any) -> str:
    """Render a value the way Home Assistant expects it on the wire.

    Dicts and lists become JSON, booleans become 'true'/'false' and a
    missing value becomes an empty payload.
    """
    if isinstance(payload, (dict, list)):
        return json.dumps(payload)
    if isinstance(payload, bool):
        return "true" if payload else "false"
    if payload is None:
        return ""
    return str(payload)


class MQTTClient:
    """Broker session with a retained 'Offline' will on `hubitat/LWT`."""

    def __init__(self, config: MQTTConfig):
        self.config = config
        self._client: Optional[aiomqtt.Client] = None

    @property
    def connected(self) -> bool:
        """Whether a broker session is open."""
        return self._client is not None

    def _require_client(self) -> aiomqtt.Client:
        if self._client is None:
            raise ConnectionError("Not connected to MQTT broker")
        return self._client

    async def connect(self) -> None:
        """Open a broker session.

        Raises:
            MqttError: If the broker cannot be reached
        """
        logger.info(f"Connecting to MQTT broker at {self.config.host}:{self.config.port}")

        client = aiomqtt.Client(
            hostname=self.config.host,
            port=self.config.port,
            username=self.config.username,
            password=self.config.password,
            identifier=self.config.client_id,
            will=aiomqtt.Will(
                topic=topics.LWT_TOPIC,
                payload=topics.PAYLOAD_NOT_AVAILABLE,
                qos=self.config.qos,
                retain=True,
            ),
        )
        await client.__aenter__()
        self._client = client
        logger.info("Connected to MQTT broker")

    async def disconnect(self) -> None:
        """Announce 'Offline' if possible and close the session.

        Also used after a broker error, so failures while closing are
        logged and swallowed.
        """
        client = self._client
        if client is None:
            return

        try:
            await self.publish_availability(topics.PAYLOAD_NOT_AVAILABLE)
        except (aiomqtt.MqttError, ConnectionError) as e:
            logger.debug(f"Could not publish offline status: {e}")

        self._client = None
        try:
            await client.__aexit__(None, None, None)
        except aiomqtt.MqttError as e:
            logger.debug(f"Error closing MQTT connection: {e}")

        logger.info("Disconnected from MQTT broker")

    async def publish(
        self,
        topic: str,
        payload: Any,
        retain: bool = False,
        qos: Optional[int] = None,
    ) -> None:
        """Publish a value, JSON-encoding dicts and lists.

        Raises:
            ConnectionError: If not connected
        """
        client = self._require_client()
        payload_str = encode_payload(payload)
        await client.publish(
            topic,
            payload=payload_str,
            qos=self.config.qos if qos is None else qos,
            retain=retain,
        )
        logger.debug(f"Published to {topic}: {payload_str[:100]}")

    async def publish_availability(self, status: str) -> None:
        """Publish 'Online' or 'Offline' to the retained LWT topic."""
        await self.publish(topics.LWT_TOPIC, status, retain=True)
        logger.info(f"Published availability: {status}")

    async def subscribe(self, topic: str) -> None:
        client = self._require_client()
        await client.subscribe(topic, qos=self.config.qos)
        logger.debug(f"Subscribed to {topic}")

    async def message_loop(self, callback: MessageCallback) -> None:
        """Feed inbound messages to `callback` until the session ends.

        Callback errors are logged; broker errors propagate so the app
        can reconnect.
        """
        client = self._require_client()
        logger.debug("Starting MQTT message loop")

        async for message in client.messages:
            topic = str(message.topic)
            payload = message.payload
            if payload is None:
                payload = b""
            elif not isinstance(payload, bytes):
                payload = str(payload).encode()

            try:
                await callback(topic, payload)
            except Exception as e:
                logger.error(f"Error processing message on {topic}: {e}")
