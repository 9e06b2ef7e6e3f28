from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List

from ticker_identifier.core.errors import ProviderNotFoundError

ProviderFactory = Callable[..., Any]


class ProviderRegistry:
    """Factories for pluggable collaborators, grouped by module name."""

    def __init__(self) -> None:
        self._factories: Dict[str, Dict[str, ProviderFactory]] = defaultdict(dict)

    def register(self, module: str, provider_type: str, factory: ProviderFactory) -> None:
        self._factories[module][provider_type] = factory

    def register_default(self, module: str, provider_type: str, factory: ProviderFactory) -> None:
        # Keeps factories injected by callers (tests, embedding apps) in place.
        self._factories[module].setdefault(provider_type, factory)

    def has(self, module: str, provider_type: str) -> bool:
        return provider_type in self._factories.get(module, {})

    def resolve(self, module: str, provider_type: str, **kwargs: Any) -> Any:
        factories = self._factories.get(module)
        if not factories or provider_type not in factories:
            raise ProviderNotFoundError(
                f"Provider not found: module={module}, provider_type={provider_type}"
            )
        return factories[provider_type](**kwargs)

    def list_types(self, module: str) -> List[str]:
        return sorted(self._factories.get(module, {}).keys())
