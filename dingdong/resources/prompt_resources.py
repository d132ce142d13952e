"""Readable documents exposed as MCP resources."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional

from ..config.settings import APP_NAME

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"
DEFAULT_MIME_TYPE = "text/plain"

ResourceLoader = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class ResourceDescriptor:
    """A URI-addressed document whose content is loaded on each read."""
    uri: str
    name: str
    description: str
    loader: ResourceLoader
    mime_type: Optional[str] = DEFAULT_MIME_TYPE

    def to_listing(self) -> Dict[str, str]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type or DEFAULT_MIME_TYPE,
        }


@dataclass(frozen=True)
class ResourceContent:
    """Resolved content of one resource read."""
    uri: str
    text: str
    mime_type: str = DEFAULT_MIME_TYPE

    def to_contents(self) -> Dict[str, str]:
        return {"uri": self.uri, "mimeType": self.mime_type, "text": self.text}


async def read_prompt_file(filename: str, fallback: str) -> str:
    """Read a prompt file without blocking the event loop.

    Args:
        filename: File name inside the prompts directory
        fallback: Text returned when the file cannot be read

    Returns:
        File content, or ``fallback`` on I/O errors
    """
    path = PROMPTS_DIR / filename
    try:
        content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        logger.debug(f"Loaded prompt {filename}")
        return content
    except OSError as e:
        logger.error(f"Failed to load prompt {filename}: {e}")
        return fallback


async def load_welcome_prompt() -> str:
    return await read_prompt_file("welcome.txt", f"Welcome to the {APP_NAME}!")


WELCOME_RESOURCE = ResourceDescriptor(
    uri="prompt://welcome",
    name="Welcome",
    description="Welcome message and usage instructions for the MCP server",
    mime_type="text/plain",
    loader=load_welcome_prompt,
)


class ResourceCatalog:
    """Fixed catalog of resources keyed by URI."""

    def __init__(self, resources: Optional[List[ResourceDescriptor]] = None):
        """Initialize the catalog.

        Args:
            resources: Resources to expose (defaults to the built-in prompts)
        """
        if resources is None:
            resources = [WELCOME_RESOURCE]
        self._resources: Dict[str, ResourceDescriptor] = {r.uri: r for r in resources}
        logger.debug(f"Initialized ResourceCatalog with {len(self._resources)} resources")

    def list_resources(self) -> List[ResourceDescriptor]:
        """List all available resources."""
        return list(self._resources.values())

    def has_resource(self, uri: str) -> bool:
        return uri in self._resources

    async def read_resource(self, uri: str) -> Optional[ResourceContent]:
        """Resolve a resource's content.

        Content is not cached; every call runs the loader again.

        Args:
            uri: Resource URI to read

        Returns:
            ResourceContent, or None if the URI is not in the catalog
        """
        descriptor = self._resources.get(uri)
        if descriptor is None:
            logger.warning(f"Resource not found: {uri}")
            return None

        logger.debug(f"Reading resource: {uri}")
        text = await descriptor.loader()
        return ResourceContent(
            uri=uri,
            text=text,
            mime_type=descriptor.mime_type or DEFAULT_MIME_TYPE,
        )
