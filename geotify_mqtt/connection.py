"""
Broker Connection
=================

Bounded Context: MQTT Infrastructure

Shared paho-mqtt (callback API v2) connection lifecycle for the registry
publisher and the location subscriber: connect with timeout, background
network loop, connected flag and structured connect/disconnect logs.

Subclasses hook _on_connected() to (re)subscribe after every successful
CONNACK, so a broker restart restores subscriptions.
"""

import threading
from typing import Optional

import paho.mqtt.client as mqtt

from .logging import StructuredLogger, LogEvent


class BrokerConnection:
    """
    One paho client plus its connection state.

    Thread Safety:
        paho callbacks run on the network thread started by loop_start();
        connection state is a threading.Event.
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        client_id: str,
        logger: StructuredLogger,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.logger = logger

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
        )
        if username and password:
            self.client.username_pw_set(username, password)

        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect

        self._connected = threading.Event()
        self._loop_running = False

    @property
    def broker(self) -> str:
        return f"{self.broker_host}:{self.broker_port}"

    def _on_connected(self, client: mqtt.Client) -> None:
        """Called on the network thread after each successful connect."""

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Broker refused connection (rc={reason_code})",
                metadata={'broker': self.broker, 'client_id': self.client_id}
            )
            return

        self._on_connected(client)
        self._connected.set()
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={'broker': self.broker, 'client_id': self.client_id}
        )

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties) -> None:
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={'broker': self.broker, 'reason_code': str(reason_code)}
        )

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect and start the network loop.

        Returns:
            True once the broker acknowledged within timeout, False otherwise
            (paho keeps retrying in the background after a timeout)
        """
        try:
            self.client.connect(self.broker_host, self.broker_port)
        except OSError as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to reach MQTT broker",
                exc_info=e,
                metadata={'broker': self.broker}
            )
            return False

        self.client.loop_start()
        self._loop_running = True

        if self._connected.wait(timeout=timeout):
            return True

        self.logger.error(
            event=LogEvent.MQTT_CONNECTION_ERROR,
            message="Connection timeout",
            metadata={'broker': self.broker, 'timeout': timeout}
        )
        return False

    def disconnect(self) -> None:
        """Safe to call multiple times, and before connect()."""
        if not self._loop_running:
            return
        self.client.loop_stop()
        self.client.disconnect()
        self._loop_running = False
        self._connected.clear()

    def is_connected(self) -> bool:
        return self._connected.is_set()
