"""
Registry verification of a list of package names.

Lookups run one at a time by default. A higher concurrency limit fans out
through a semaphore; results always follow input order.
"""

import asyncio
from typing import List, Optional

from .cli_config import get_config
from .registry_clients import NPMClient, RegistryCheckResult, get_registry_client
from .structured_logging import get_registry_logger


async def _verify_sequential(
    client: NPMClient, names: List[str]
) -> List[RegistryCheckResult]:
    results = []
    for name in names:
        results.append(await client.check_package_exists(name))
    return results


async def _verify_concurrent(
    client: NPMClient, names: List[str], max_concurrent: int
) -> List[RegistryCheckResult]:
    semaphore = asyncio.Semaphore(max_concurrent)

    async def check(name: str) -> RegistryCheckResult:
        async with semaphore:
            return await client.check_package_exists(name)

    # gather keeps the order of its arguments
    return list(await asyncio.gather(*(check(name) for name in names)))


async def verify_packages(
    names: List[str],
    client: Optional[NPMClient] = None,
    max_concurrent: Optional[int] = None,
) -> List[RegistryCheckResult]:
    """
    Look up each name in the registry.

    Args:
        names: Package names, in display order
        client: Registry client; a default npm client when omitted
        max_concurrent: Concurrent lookups (defaults to config, 1 = sequential)

    Returns:
        One RegistryCheckResult per input name, in input order
    """
    if not names:
        return []

    if max_concurrent is None:
        max_concurrent = get_config().verify.max_concurrent

    logger = get_registry_logger()
    logger.info(
        "verification_started", total_packages=len(names), max_concurrent=max_concurrent
    )

    async with client or get_registry_client() as registry:
        if max_concurrent <= 1:
            results = await _verify_sequential(registry, names)
        else:
            results = await _verify_concurrent(registry, names, max_concurrent)

    logger.info(
        "verification_completed",
        total_packages=len(results),
        not_found=sum(1 for r in results if not r.exists),
    )
    return results
