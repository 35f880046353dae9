"""Resource hosting: literal URIs and URI templates."""

from .registry import Resource, ResourceRegistry, ResourceTemplate
from .uri_template import UriTemplate

__all__ = [
    "Resource",
    "ResourceRegistry",
    "ResourceTemplate",
    "UriTemplate",
]
