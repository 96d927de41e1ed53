# core/collector.py
"""
Collector kernel and fan-out.

run_collector() owns the infrastructure for one provider (credential lookup,
error capture, logging) and delegates the HTTP call and normalization to the
provider's own functions. run_all_collectors() runs every provider at once
and joins on all of them before building the payload.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, wait

from .config import REQUEST_TIMEOUT, ConfigSource
from .errors import UsageError
from .models import STATUS_ERROR, STATUS_NO_CREDENTIALS, ProviderResult, now_ms, truncate

logger = logging.getLogger("ai_usage.collector")


def run_collector(provider, config, now=None) -> ProviderResult:
    """
    Collect one provider's usage. Never raises.

    Args:
        provider: Provider record (service, resolve, fetch, normalize, hints)
        config: ConfigSource used by the credential resolver
        now: Epoch ms used for reset countdowns (defaults to after the fetch)

    Returns:
        ProviderResult with status ok, error or no_credentials
    """
    service = provider.service
    credential = None

    try:
        credential = provider.resolve(config)
        if credential is None:
            logger.info(f"Skipping {service} - no credentials found")
            return ProviderResult(service=service, status=STATUS_NO_CREDENTIALS, hint=provider.missing_hint)

        response = provider.fetch(credential)
        result = provider.normalize(response, now_ms() if now is None else now)

    except UsageError as e:
        logger.warning(f"✗ {service} collection failed: {e.message}")
        result = ProviderResult(
            service=service,
            status=STATUS_ERROR,
            error=e.message,
            hint=truncate(e.hint) if e.hint else provider.error_hint,
        )

    except Exception as e:
        # A provider bug must not take down the other four
        logger.exception(f"✗ {service} collection crashed")
        result = ProviderResult(
            service=service,
            status=STATUS_ERROR,
            error=truncate(str(e) or type(e).__name__),
            hint=provider.error_hint,
        )

    else:
        logger.info(f"✓ {service} collection successful")

    if credential is not None:
        result.source = credential.source
    return result


def build_payload(results, fetched_at_ms=None) -> dict:
    """Sort by service name so output order never depends on completion order."""
    ordered = sorted(results, key=lambda r: r.service)
    return {
        "ok": True,
        "fetchedAtMs": fetched_at_ms or now_ms(),
        "data": [r.to_dict() for r in ordered],
    }


def run_all_collectors(providers, config=None, timeout=None) -> dict:
    """
    Run every provider concurrently and return one payload.

    The join waits for all collectors, bounded by timeout seconds (default:
    three request timeouts). A provider still running at the deadline is
    reported as an error instead of holding up the others.
    """
    config = config or ConfigSource()
    timeout = REQUEST_TIMEOUT * 3 if timeout is None else timeout

    logger.info(f"=== Collecting usage from {len(providers)} providers ===")

    pool = ThreadPoolExecutor(max_workers=max(1, len(providers)), thread_name_prefix="usage")
    try:
        futures = [(pool.submit(run_collector, provider, config), provider) for provider in providers]
        done, _ = wait([future for future, _ in futures], timeout=timeout)
    finally:
        # Hung requests finish in the background; nobody waits on them
        pool.shutdown(wait=False, cancel_futures=True)

    results = []
    for future, provider in futures:
        if future in done:
            results.append(future.result())
            continue
        logger.warning(f"✗ {provider.service} timed out after {timeout:g}s")
        results.append(ProviderResult(
            service=provider.service,
            status=STATUS_ERROR,
            error="Timed out",
            hint=f"No response within {timeout:g}s",
        ))

    payload = build_payload(results)
    ok_count = sum(1 for r in payload["data"] if r["status"] == "ok")
    logger.info(f"=== Collection complete: {ok_count}/{len(results)} providers ok ===")
    return payload
