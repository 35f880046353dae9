"""Generic named-entity registry shared by tools, resources and prompts."""

import inspect
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from .cancellation import CancellationToken
from .exceptions import (
    CancellationError,
    DuplicateError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from .notifications import NotificationQueue
from .schema import Schema, SchemaLike
from .validation import SchemaValidator, format_violations

logger = logging.getLogger(__name__)


def accepts_keyword(func: Callable[..., Any], name: str) -> bool:
    """Return True if ``func`` can be called with keyword ``name``."""
    try:
        parameters = inspect.signature(func).parameters
    except (TypeError, ValueError):
        return False
    if name in parameters:
        return parameters[name].kind in (
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.KEYWORD_ONLY,
        )
    return any(p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters.values())


@dataclass
class Entity:
    """A registered name with its schema and handler."""

    name: str
    schema: Schema
    handler: Callable[..., Any]
    description: str | None = None
    wants_token: bool = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError(f"{type(self).__name__} name must not be empty")
        if not callable(self.handler):
            raise TypeError(f"Handler for '{self.name}' is not callable")
        if self.description is None:
            self.description = self.schema.description
        self.wants_token = accepts_keyword(self.handler, "token")

    def metadata(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description:
            data["description"] = self.description
        return data


EntityT = TypeVar("EntityT", bound=Entity)


class DuplicatePolicy(str, Enum):
    """What ``register`` does when the name already exists."""

    REPLACE = "replace"
    """Update schema and handler in place; iteration position is kept."""

    REJECT = "reject"
    """Raise ``DuplicateError`` and leave the existing entity untouched."""


class Registry(Generic[EntityT]):
    """Insertion-ordered store of named entities.

    Subclasses set ``kind``, ``entity_class`` and ``list_changed_method``.
    Every successful ``register``, ``remove`` and ``clear`` enqueues exactly
    one list-changed notification while a queue is attached.
    """

    kind: ClassVar[str] = "entity"
    entity_class: ClassVar[type[Entity]] = Entity
    list_changed_method: ClassVar[str | None] = None

    def __init__(
        self,
        notifications: NotificationQueue | None = None,
        *,
        duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.REPLACE,
        validator: SchemaValidator | None = None,
    ):
        self._lock = threading.RLock()
        self._entities: dict[str, EntityT] = {}
        self._notifications = notifications
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self.validator = validator or SchemaValidator()

    @property
    def notifications(self) -> NotificationQueue | None:
        return self._notifications

    def attach(self, notifications: NotificationQueue) -> None:
        self._notifications = notifications

    def detach(self) -> None:
        self._notifications = None

    def register(
        self,
        name: str,
        schema: SchemaLike,
        handler: Callable[..., Any],
        *,
        description: str | None = None,
    ) -> EntityT:
        """Register or update an entity.

        Args:
            name: Unique name (the registry key)
            schema: ``Schema`` or raw descriptor
            handler: Callable invoked by ``execute``
            description: Human-readable description; defaults to the schema's

        Returns:
            The stored entity

        Raises:
            DuplicateError: If the name exists and the policy is ``REJECT``
        """
        entity = self.entity_class(
            name=name,
            schema=Schema.from_descriptor(schema),
            handler=handler,
            description=description,
        )
        return self._store(entity)  # type: ignore[arg-type]

    def _store(self, entity: EntityT) -> EntityT:
        with self._lock:
            replacing = entity.name in self._entities
            if replacing and self.duplicate_policy is DuplicatePolicy.REJECT:
                raise DuplicateError(self.kind, entity.name)
            # Assigning an existing key keeps its position in the dict
            self._entities[entity.name] = entity
            self._notify_list_changed()

        logger.debug(f"{'Updated' if replacing else 'Registered'} {self.kind} '{entity.name}'")
        return entity

    def get(self, name: str) -> EntityT | None:
        with self._lock:
            return self._entities.get(name)

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._entities

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.exists(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._entities)

    def entities(self) -> list[EntityT]:
        with self._lock:
            return list(self._entities.values())

    def list(self) -> list[dict[str, Any]]:
        """Entity metadata in first-registration order."""
        return [entity.metadata() for entity in self.entities()]

    def remove(self, name: str) -> bool:
        with self._lock:
            if name not in self._entities:
                return False
            del self._entities[name]
            self._notify_list_changed()
        logger.debug(f"Removed {self.kind} '{name}'")
        return True

    def clear(self) -> None:
        with self._lock:
            count = len(self._entities)
            self._entities.clear()
            self._clear_extra()
            self._notify_list_changed()
        logger.debug(f"Cleared {count} {self.kind} entries")

    def _clear_extra(self) -> None:
        """Hook for subclasses holding more than one collection."""

    def execute(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        token: CancellationToken | None = None,
    ) -> Any:
        """Validate ``arguments`` and run the entity's handler.

        Returns:
            The handler's return value, unchanged

        Raises:
            NotFoundError: If ``name`` is not registered
            ValidationError: If arguments violate the schema (handler not run)
            CancellationError: If the token is cancelled
            InternalError: If the handler raised anything else
        """
        entity = self.get(name)
        if entity is None:
            raise NotFoundError(self.kind, name)
        arguments = dict(arguments or {})
        self._validate(entity, arguments)
        if token is not None:
            token.throw_if_cancelled()
        return self._run(entity, lambda: self._call_handler(entity, arguments, token))

    def _validate(self, entity: EntityT, arguments: Mapping[str, Any]) -> None:
        try:
            self.validator.validate(arguments, entity.schema)
        except ValidationError as e:
            logger.warning(format_violations(e.violations, f"{self.kind} '{entity.name}' arguments"))
            raise

    def _call_handler(
        self, entity: EntityT, arguments: dict[str, Any], token: CancellationToken | None
    ) -> Any:
        if entity.wants_token:
            return entity.handler(arguments, token=token or CancellationToken.none())
        return entity.handler(arguments)

    def _run(self, entity: EntityT, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except CancellationError:
            raise
        except Exception as e:
            logger.exception(f"{self.kind.capitalize()} '{entity.name}' handler failed")
            raise InternalError(f"{self.kind.capitalize()} '{entity.name}' failed: {e}") from e

    def _notify_list_changed(self) -> None:
        if self._notifications is not None and self.list_changed_method:
            self._notifications.enqueue(self.list_changed_method)
