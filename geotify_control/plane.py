"""
MQTTControlPlane - command channel of the geotify service

Subscribes to the command topic, runs each command through a
CommandRegistry and answers on the reply topic. Service status
("connected", "running", "disconnected") is published retained on the
status topic so a late dashboard sees the current state.

Topics (all QoS 1):
    geotify/control/{service_id}/commands   in
    geotify/control/{service_id}/replies    out, one reply per command
    geotify/control/{service_id}/status     out, retained

Handlers run on the paho network thread; GeotificationService serializes
them with its own lock.
"""

import json
import logging
from datetime import datetime, timezone
from threading import Event
from typing import Any, Dict, Optional, Tuple, Type

import paho.mqtt.client as mqtt

from geotify_monitor import CapacityExceededError
from geotify_store import StoreWriteError
from .commands import CommandRegistry, CommandNotAvailableError, InvalidCommandError

logger = logging.getLogger(__name__)

# First match wins; anything else is reported as error_kind "internal"
_FAILURES: Tuple[Tuple[Type[Exception], Optional[str], int], ...] = (
    (CommandNotAvailableError, None, logging.WARNING),
    (CapacityExceededError, "capacity_exceeded", logging.WARNING),
    (StoreWriteError, "store_write", logging.ERROR),
    (ValueError, "invalid_command", logging.WARNING),
)


def _failure(command: Optional[str], error: str, error_kind: Optional[str] = None) -> Dict[str, Any]:
    reply: Dict[str, Any] = {"command": command, "ok": False, "error": error}
    if error_kind:
        reply["error_kind"] = error_kind
    return reply


class MQTTControlPlane:
    """
    Example:
        plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="geotify/control/napper_01/commands",
            status_topic="geotify/control/napper_01/status",
            reply_topic="geotify/control/napper_01/replies",
            client_id="geotify_control_napper_01"
        )
        register_geotify_commands(plane.command_registry, service)
        plane.connect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        reply_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.reply_topic = reply_topic
        self.client_id = client_id
        self.command_registry = CommandRegistry()

        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        if username and password:
            self.client.username_pw_set(username, password)
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        self._connected = Event()
        self._loop_running = False

    def connect(self, timeout: float = 5.0) -> bool:
        """True once subscribed to the command topic within timeout."""
        logger.info(f"🔌 Control plane -> {self.broker_host}:{self.broker_port}")
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
        except OSError as e:
            logger.error(f"❌ Control plane cannot reach broker: {e}")
            return False

        self.client.loop_start()
        self._loop_running = True

        if not self._connected.wait(timeout=timeout):
            logger.error(f"❌ Control plane got no CONNACK within {timeout}s")
            return False
        return True

    def disconnect(self) -> None:
        """Publishes a final "disconnected" status. Idempotent."""
        if not self._loop_running:
            return
        self.publish_status("disconnected")
        self.client.loop_stop()
        self.client.disconnect()
        self._loop_running = False
        self._connected.clear()
        logger.info("🔌 Control plane disconnected")

    def publish_status(self, status: str, details: Optional[Dict[str, Any]] = None) -> None:
        message: Dict[str, Any] = {
            "status": status,
            "client_id": self.client_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            message["details"] = details
        self.client.publish(self.status_topic, json.dumps(message), qos=1, retain=True)
        logger.debug(f"📤 status={status}")

    def handle_command(self, payload: str) -> Optional[Dict[str, Any]]:
        """
        Decode and execute one command payload.

        Returns:
            Reply dict with ok/result or ok/error[/error_kind], or None when
            the payload names no command
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Command is not JSON ({e}): {payload!r}")
            return _failure(None, f"Invalid JSON: {e}")
        if not isinstance(data, dict):
            return _failure(None, "Command must be a JSON object")

        command = str(data.get('command', '')).lower()
        if not command:
            logger.warning("⚠️ Message without 'command' ignored")
            return None

        logger.info(f"🎯 {command}")
        try:
            reply = {"command": command, "ok": True,
                     "result": self.command_registry.execute(command, data)}
        except Exception as e:
            reply = self._reply_for_error(command, e)

        if data.get('request_id') is not None:
            reply["request_id"] = data['request_id']
        return reply

    def _reply_for_error(self, command: str, error: Exception) -> Dict[str, Any]:
        for exc_type, error_kind, level in _FAILURES:
            if isinstance(error, exc_type):
                logger.log(level, f"⚠️ '{command}' failed: {error}")
                return _failure(command, str(error), error_kind)

        logger.error(f"❌ '{command}' raised {type(error).__name__}: {error}", exc_info=error)
        return _failure(command, str(error), "internal")

    # paho callbacks, network thread

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(f"❌ Broker refused control plane (rc={reason_code})")
            self._connected.clear()
            return

        client.subscribe(self.command_topic, qos=1)
        logger.info(f"📥 Listening on {self.command_topic}")
        self.publish_status("connected")
        self._connected.set()

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        self._connected.clear()
        if reason_code.is_failure:
            logger.warning(f"⚠️ Control plane lost broker (rc={reason_code})")

    def _on_message(self, client, userdata, msg):
        try:
            payload = msg.payload.decode('utf-8')
            reply = self.handle_command(payload)
            if reply is not None:
                client.publish(self.reply_topic, json.dumps(reply, default=str), qos=1)
        except UnicodeDecodeError as e:
            logger.error(f"❌ Command payload is not UTF-8: {e}")
        except Exception as e:
            logger.error(f"❌ Error handling command on {msg.topic}: {e}", exc_info=True)
