"""Deterministic provider selection with fallback."""

import hashlib
import logging
from typing import Optional, Sequence

from bootforge.providers.base import CIProvider

logger = logging.getLogger(__name__)


def provider_index(job_id: str, count: int) -> int:
    """Stable preferred index for a job (sha256, not the salted built-in hash)."""
    digest = hashlib.sha256(job_id.encode("utf-8")).digest()
    return int.from_bytes(digest, "big") % count


async def _probe(provider: CIProvider) -> bool:
    try:
        return await provider.is_available()
    except Exception as e:
        logger.warning("Availability probe failed for %s: %s", provider.id, e)
        return False


async def select_provider(job_id: str, providers: Sequence[CIProvider]) -> Optional[CIProvider]:
    """Pick a provider for ``job_id``.

    Steps:
    1. Probe the provider at the hashed index
    2. Otherwise scan the others in list order
    3. Return None when nothing has capacity (an expected outcome)
    """
    count = len(providers)
    if count == 0:
        return None

    preferred = provider_index(job_id, count)
    if await _probe(providers[preferred]):
        return providers[preferred]

    for index in range(count):
        if index == preferred:
            continue
        if await _probe(providers[index]):
            logger.info(
                "Preferred provider %s busy, falling back to %s",
                providers[preferred].id, providers[index].id,
            )
            return providers[index]

    logger.info("No available CI providers for job %s", job_id)
    return None
