"""Document type, loader interface and loader registry."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..exceptions import NoLoaderFoundError


@dataclass
class Document:
    """Normalized text of one source plus loader-provided metadata."""

    text: str
    source: str
    type: str
    metadata: dict[str, Any] = field(default_factory=dict)


class DocumentLoader(ABC):
    """Loads one kind of source into a ``Document``."""

    @abstractmethod
    def can_handle(self, source: str) -> bool:
        ...

    @abstractmethod
    async def load(self, source: str) -> Document:
        """Load the source. Raises DocumentLoadError for unreadable input."""
        ...


class LoaderRegistry:
    """Ordered set of loaders; the first whose ``can_handle`` is true wins."""

    def __init__(self, loaders: Optional[Iterable[DocumentLoader]] = None):
        self._loaders: list[DocumentLoader] = list(loaders or [])

    @classmethod
    def default(cls) -> "LoaderRegistry":
        """Registry with the built-in text, markdown, PDF, DOCX and HTML loaders."""
        from .loaders import DOCXLoader, HTMLLoader, PDFLoader, TextLoader

        return cls([TextLoader(), PDFLoader(), DOCXLoader(), HTMLLoader()])

    def register(self, loader: DocumentLoader) -> "LoaderRegistry":
        self._loaders.append(loader)
        return self

    def get_loader(self, source: str) -> DocumentLoader:
        for loader in self._loaders:
            if loader.can_handle(source):
                return loader
        raise NoLoaderFoundError(source)

    async def load(self, source: str) -> Document:
        return await self.get_loader(source).load(source)

    def __len__(self) -> int:
        return len(self._loaders)
