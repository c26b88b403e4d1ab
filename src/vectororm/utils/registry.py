"""Name-to-factory registries for pluggable providers."""

from typing import Any, Callable, ClassVar

from ..exceptions import ProviderNotFoundError

Factory = Callable[..., Any]


class ProviderRegistry:
    """Base for the adapter, embedder and LLM registries.

    Every subclass keeps its own table. Names are matched case-insensitively
    and an empty name resolves to ``default``.
    """

    default: ClassVar[str] = ""
    _factories: ClassVar[dict[str, Factory]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._factories = {}

    @classmethod
    def _key(cls, name: str | None) -> str:
        return (name or cls.default).lower().strip()

    @classmethod
    def register(cls, name: str) -> Callable[[Factory], Factory]:
        """Decorator registering ``factory`` under ``name`` (replacing any previous one)."""

        def decorator(factory: Factory) -> Factory:
            cls._factories[cls._key(name)] = factory
            return factory

        return decorator

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._factories.pop(cls._key(name), None)

    @classmethod
    def factory(cls, name: str | None) -> Factory:
        """Look up a factory. Raises ProviderNotFoundError for unknown names."""
        key = cls._key(name)
        if key not in cls._factories:
            raise ProviderNotFoundError(key, cls.list_providers())
        return cls._factories[key]

    @classmethod
    def list_providers(cls) -> list[str]:
        return sorted(cls._factories)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return cls._key(name) in cls._factories
