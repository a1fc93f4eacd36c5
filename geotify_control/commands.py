"""
Geotify command registry and handlers.

Bounded Context: UI-originated add/remove requests arriving as commands.

Commands (payload is the full JSON command object):
    add_geotification     latitude, longitude, radius, note?, event_type?, identifier?
    remove_geotification  identifier
    list_geotifications
    rearm
    status

Every handler returns a JSON-compatible result dict. Invalid payloads
raise InvalidCommandError; registry-full raises CapacityExceededError.
The control plane turns both into a failed command reply.
"""

from typing import Any, Callable, Dict, Set
import threading

from geotify_region import Coordinate, EventType

CommandHandler = Callable[[Dict[str, Any]], Dict[str, Any]]


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class InvalidCommandError(ValueError):
    """Raised when a command payload is missing fields or malformed"""
    pass


class CommandRegistry:
    """
    Registry of control commands with explicit registration.

    Thread Safety:
      - Lock for write operations (register)
      - Reads are lock-free (dict reads)

    Example:
        registry = CommandRegistry()
        register_geotify_commands(registry, service)
        result = registry.execute('status', {'command': 'status'})
    """

    def __init__(self):
        self._commands: Dict[str, CommandHandler] = {}
        self._descriptions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, command: str, handler: CommandHandler, description: str) -> None:
        """
        Raises:
            ValueError: If command already registered
        """
        with self._lock:
            if command in self._commands:
                raise ValueError(f"Command '{command}' already registered")

            self._commands[command] = handler
            self._descriptions[command] = description

    def execute(self, command: str, command_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Raises:
            CommandNotAvailableError: If command not registered
        """
        if command not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{command}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )
        return self._commands[command](command_data)

    def is_available(self, command: str) -> bool:
        return command in self._commands

    @property
    def available_commands(self) -> Set[str]:
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        return dict(self._descriptions)


def _require(data: Dict[str, Any], key: str) -> Any:
    if data.get(key) is None:
        raise InvalidCommandError(f"Missing required field: {key}")
    return data[key]


def parse_add_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate an add_geotification payload into service keyword arguments.

    Raises:
        InvalidCommandError: On missing or invalid fields
    """
    try:
        coordinate = Coordinate(
            latitude=float(_require(data, 'latitude')),
            longitude=float(_require(data, 'longitude')),
        )
        radius = float(_require(data, 'radius'))
        event_type = EventType(data.get('event_type', EventType.ON_ENTRY.value))
    except InvalidCommandError:
        raise
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidCommandError(f"Invalid add_geotification payload: {e}") from e

    if radius <= 0:
        raise InvalidCommandError(f"radius must be > 0, got {radius}")

    identifier = data.get('identifier')
    return {
        'coordinate': coordinate,
        'radius': radius,
        'note': str(data.get('note') or ""),
        'event_type': event_type,
        'identifier': str(identifier) if identifier else None,
    }


def register_geotify_commands(registry: CommandRegistry, service) -> None:
    """Bind the geotification commands to a GeotificationService."""

    def add_geotification(data: Dict[str, Any]) -> Dict[str, Any]:
        result = service.add_geotification(**parse_add_payload(data))
        return {
            'descriptor': result.descriptor.to_dict(),
            'submitted': result.outcome.submitted,
            'advisories': [a.to_dict() for a in result.outcome.advisories],
        }

    def remove_geotification(data: Dict[str, Any]) -> Dict[str, Any]:
        identifier = str(_require(data, 'identifier'))
        return {'identifier': identifier, 'removed': service.remove_geotification(identifier)}

    def list_geotifications(data: Dict[str, Any]) -> Dict[str, Any]:
        return {'geotifications': service.list_geotifications()}

    def rearm(data: Dict[str, Any]) -> Dict[str, Any]:
        outcomes = service.rearm_all()
        return {
            'rearmed': [o.identifier for o in outcomes if o.submitted],
            'advisories': [a.to_dict() for o in outcomes for a in o.advisories],
        }

    def status(data: Dict[str, Any]) -> Dict[str, Any]:
        return service.status()

    registry.register('add_geotification', add_geotification, "Save and arm a geotification")
    registry.register('remove_geotification', remove_geotification, "Disarm and delete a geotification")
    registry.register('list_geotifications', list_geotifications, "List saved geotifications")
    registry.register('rearm', rearm, "Re-arm every saved geotification that is not monitored")
    registry.register('status', status, "Registry and monitoring status")
