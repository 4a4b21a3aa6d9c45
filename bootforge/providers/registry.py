"""Provider registry: a fixed, ordered set of CI providers."""

import logging
from typing import Iterator, List, Sequence, Tuple

import httpx

from bootforge.config import Settings
from bootforge.providers.base import CIProvider
from bootforge.providers.cirrus import CirrusCIProvider
from bootforge.providers.github import GitHubActionsProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Immutable ordered collection of providers.

    Built once at startup. Membership changes require a restart; the
    selector relies on a stable order to map job ids to providers.
    """

    def __init__(self, providers: Sequence[CIProvider]):
        self._providers: Tuple[CIProvider, ...] = tuple(providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[CIProvider]:
        return iter(self._providers)

    def __getitem__(self, index: int) -> CIProvider:
        return self._providers[index]

    def ids(self) -> List[str]:
        return [p.id for p in self._providers]


def build_registry(settings: Settings, http: httpx.AsyncClient) -> ProviderRegistry:
    """Instantiate every configured provider, GitHub first then Cirrus."""
    providers: List[CIProvider] = []
    for config in settings.github_providers:
        providers.append(GitHubActionsProvider(config, http))
    for config in settings.cirrus_providers:
        providers.append(CirrusCIProvider(config, http))

    for provider in providers:
        logger.info("Registered provider: %s", provider.id)
    if not providers:
        logger.warning("No CI providers configured; every dispatch will re-queue")

    return ProviderRegistry(providers)
