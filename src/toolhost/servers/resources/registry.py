"""Resource registry with literal URIs and URI templates."""

import logging
from dataclasses import dataclass
from typing import Any

from toolhost.core.mcp.cancellation import CancellationToken
from toolhost.core.mcp.constants import NOTIFY_RESOURCES_LIST_CHANGED
from toolhost.core.mcp.exceptions import DuplicateError, NotFoundError
from toolhost.core.mcp.protocols import ResourceHandler
from toolhost.core.mcp.registry import DuplicatePolicy, Entity, Registry
from toolhost.core.mcp.schema import Schema, SchemaLike

from .uri_template import UriTemplate

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "text/plain"


@dataclass
class Resource(Entity):
    """A resource at a literal URI: ``handler(uri, params) -> content``."""

    uri: str = ""
    mime_type: str = DEFAULT_MIME_TYPE

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.uri:
            raise ValueError(f"Resource '{self.name}' needs a URI")

    def metadata(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri, "name": self.name}
        if self.description:
            data["description"] = self.description
        data["mimeType"] = self.mime_type
        return data


@dataclass
class ResourceTemplate(Resource):
    """A family of resources matched by a URI template."""

    template: UriTemplate | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.template is None:
            self.template = UriTemplate(self.uri)

    def metadata(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uriTemplate": self.uri, "name": self.name}
        if self.description:
            data["description"] = self.description
        data["mimeType"] = self.mime_type
        return data


class ResourceRegistry(Registry[Resource]):
    """Resources keyed by name, resolved by URI.

    ``read`` tries literal URIs first, then templates in registration order.
    Templates share the list-changed notification with plain resources.
    """

    kind = "resource"
    entity_class = Resource
    list_changed_method = NOTIFY_RESOURCES_LIST_CHANGED

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._templates: dict[str, ResourceTemplate] = {}

    def register(  # type: ignore[override]
        self,
        name: str,
        uri: str,
        handler: ResourceHandler,
        *,
        description: str | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
        schema: SchemaLike = None,
    ) -> Resource:
        """Register a resource at a literal URI.

        Args:
            name: Unique resource name
            uri: Literal URI the resource is read at
            handler: ``handler(uri, params)`` returning text, bytes or a mapping
            description: Optional description
            mime_type: MIME type reported when the handler does not set one
            schema: Optional schema for read parameters

        Returns:
            The stored resource
        """
        resource = Resource(
            name=name,
            schema=Schema.from_descriptor(schema),
            handler=handler,
            description=description,
            uri=uri,
            mime_type=mime_type,
        )
        return self._store(resource)

    def register_static(
        self,
        name: str,
        uri: str,
        content: str | bytes,
        *,
        description: str | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> Resource:
        """Register a resource whose content never changes."""
        return self.register(
            name,
            uri,
            lambda uri, params: content,
            description=description,
            mime_type=mime_type,
        )

    def register_template(
        self,
        name: str,
        uri_pattern: str,
        handler: ResourceHandler,
        *,
        description: str | None = None,
        mime_type: str = DEFAULT_MIME_TYPE,
        schema: SchemaLike = None,
    ) -> ResourceTemplate:
        """Register a handler for every URI matching ``uri_pattern``.

        Raises:
            ValueError: If the pattern is not a valid URI template
            DuplicateError: If the name exists and the policy is ``REJECT``
        """
        template = ResourceTemplate(
            name=name,
            schema=Schema.from_descriptor(schema),
            handler=handler,
            description=description,
            uri=uri_pattern,
            mime_type=mime_type,
            template=UriTemplate(uri_pattern),
        )
        with self._lock:
            replacing = name in self._templates
            if replacing and self.duplicate_policy is DuplicatePolicy.REJECT:
                raise DuplicateError("resource template", name)
            self._templates[name] = template
            self._notify_list_changed()
        logger.debug(
            f"{'Updated' if replacing else 'Registered'} resource template '{name}' ({uri_pattern})"
        )
        return template

    def get_template(self, name: str) -> ResourceTemplate | None:
        with self._lock:
            return self._templates.get(name)

    def remove_template(self, name: str) -> bool:
        with self._lock:
            if name not in self._templates:
                return False
            del self._templates[name]
            self._notify_list_changed()
        logger.debug(f"Removed resource template '{name}'")
        return True

    def templates(self) -> list[ResourceTemplate]:
        with self._lock:
            return list(self._templates.values())

    def list_templates(self) -> list[dict[str, Any]]:
        return [template.metadata() for template in self.templates()]

    def _clear_extra(self) -> None:
        self._templates.clear()

    def resolve(self, uri: str) -> tuple[Resource, dict[str, Any]]:
        """Find the resource for ``uri`` and its placeholder bindings.

        Raises:
            NotFoundError: If neither a literal URI nor a template matches
        """
        with self._lock:
            resources = list(self._entities.values())
            templates = list(self._templates.values())

        for resource in resources:
            if resource.uri == uri:
                return resource, {}
        for template in templates:
            bindings = template.template.match(uri) if template.template else None
            if bindings is not None:
                logger.debug(f"URI {uri} matched template '{template.name}'")
                return template, bindings
        raise NotFoundError(self.kind, uri)

    def read(self, uri: str, token: CancellationToken | None = None) -> Any:
        """Resolve ``uri`` and return the handler's content unchanged."""
        return self.read_entry(uri, token)[1]

    def read_entry(
        self, uri: str, token: CancellationToken | None = None
    ) -> tuple[Resource, Any]:
        """Like ``read`` but also return the resource that served ``uri``."""
        resource, bindings = self.resolve(uri)
        self._validate(resource, bindings)
        if token is not None:
            token.throw_if_cancelled()
        content = self._run(resource, lambda: self._call_resource(resource, uri, bindings, token))
        return resource, content

    def _call_handler(
        self, entity: Resource, arguments: dict[str, Any], token: CancellationToken | None
    ) -> Any:
        return self._call_resource(entity, entity.uri, arguments, token)

    def _call_resource(
        self,
        resource: Resource,
        uri: str,
        params: dict[str, Any],
        token: CancellationToken | None,
    ) -> Any:
        if resource.wants_token:
            return resource.handler(uri, params, token=token or CancellationToken.none())
        return resource.handler(uri, params)

    def notify_updated(self, uri: str) -> bool:
        """Announce a content change to subscribers of ``uri``."""
        if self._notifications is None:
            return False
        return self._notifications.resource_updated(uri) is not None
