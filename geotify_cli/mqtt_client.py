"""
One-shot MQTT publisher used by geotify-cli.

Each send() opens a connection, publishes a single JSON message at QoS 1
and disconnects once the broker acknowledged it.
"""

import json
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

PUBLISH_TIMEOUT = 10.0


class MQTTCommandClient:
    """Sends commands and simulated location events to a geotify service."""

    def __init__(
        self,
        broker: str = "localhost",
        port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None
    ):
        self.broker = broker
        self.port = port
        self.client = mqtt.Client(callback_api_version=mqtt.CallbackAPIVersion.VERSION2)
        if username and password:
            self.client.username_pw_set(username, password)

    def send(self, topic: str, message: Dict[str, Any], qos: int = 1) -> bool:
        """
        Returns:
            True if the broker acknowledged the message within PUBLISH_TIMEOUT

        Raises:
            ValueError: message is not JSON serializable
            ConnectionError: broker unreachable
        """
        try:
            payload = json.dumps(message)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Message is not JSON serializable: {e}") from e

        try:
            self.client.connect(self.broker, self.port)
        except OSError as e:
            raise ConnectionError(f"No MQTT broker at {self.broker}:{self.port} ({e})") from e

        self.client.loop_start()
        try:
            info = self.client.publish(topic, payload, qos=qos)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                return False
            info.wait_for_publish(timeout=PUBLISH_TIMEOUT)
            delivered = info.is_published()
        finally:
            self.client.loop_stop()
            self.client.disconnect()

        label = message.get('command') or message.get('type', 'message')
        print(f"{'✅' if delivered else '⚠️ '} {label} -> {topic}")
        return delivered
