"""Resource catalog exposed through resources/list and resources/read."""

from .prompt_resources import (
    DEFAULT_MIME_TYPE,
    WELCOME_RESOURCE,
    ResourceCatalog,
    ResourceContent,
    ResourceDescriptor,
)

__all__ = [
    'DEFAULT_MIME_TYPE',
    'WELCOME_RESOURCE',
    'ResourceCatalog',
    'ResourceContent',
    'ResourceDescriptor',
]
