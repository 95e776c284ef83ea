"""Ordered multi-endpoint fallback over the upstream transport."""

import time
from typing import Any, Optional

from backoffice import metrics
from backoffice.logging_config import get_logger
from backoffice.upstream.endpoints import OPERATIONS, EndpointCandidate, Transport
from backoffice.upstream.envelope import resolve_envelope
from backoffice.upstream.http_client import RawResponse, UpstreamTransport
from backoffice.upstream.models import ApiResult


class MultiEndpointRequester:
    """
    Runs a logical operation against its endpoint candidates in order.

    A candidate fails when the transport call errors, times out, answers
    non-2xx, or answers 2xx with a body the envelope resolver cannot turn
    into a successful result. Failures are expected (deployments serve
    different endpoint variants) and only move on to the next candidate.
    """

    def __init__(
        self,
        transport: UpstreamTransport,
        operations: Optional[dict[str, tuple[EndpointCandidate, ...]]] = None,
    ):
        self.transport = transport
        self.operations = operations if operations is not None else OPERATIONS

    async def _send(
        self,
        candidate: EndpointCandidate,
        form: Optional[dict[str, str]],
        query: Optional[dict[str, str]],
        json_body: Any,
    ) -> RawResponse:
        if candidate.transport is Transport.FORM_POST:
            return await self.transport.form_post(candidate.path, form)
        if candidate.transport is Transport.JSON_GET:
            return await self.transport.json_get(candidate.path, query if query is not None else form)
        return await self.transport.json_post(
            candidate.path, json_body if json_body is not None else dict(form or {})
        )

    async def call(
        self,
        operation: str,
        data_type: Any,
        form: Optional[dict[str, str]] = None,
        query: Optional[dict[str, str]] = None,
        json_body: Any = None,
    ) -> ApiResult:
        """
        Run an operation, trying each candidate until one succeeds.

        Args:
            operation: Logical operation name, a key of the operations registry
            data_type: Payload type handed to the envelope resolver
            form: Parameters for form candidates (and JSON GET when no query is given)
            query: Query-string parameters for JSON GET candidates
            json_body: Body for JSON POST candidates

        Returns:
            The first successful ApiResult, or a failure naming the operation
            plus the last upstream diagnostic seen

        Raises:
            KeyError: If the operation is not registered
        """
        candidates = self.operations[operation]
        log = get_logger(__name__, operation=operation)
        last_failure: Optional[ApiResult] = None

        for candidate in candidates:
            transport = candidate.transport.value
            start = time.monotonic()
            raw = await self._send(candidate, form, query, json_body)
            duration = time.monotonic() - start
            attempt = {"transport": transport, "path": candidate.path, "status": raw.status}

            if not raw.success:
                metrics.record_upstream_attempt(operation, transport, "transport_failed", duration)
                log.debug(
                    f"Endpoint failed: {candidate.path} (status {raw.status})",
                    extra={**attempt, "outcome": "transport_failed"},
                )
                continue

            result = resolve_envelope(raw.body, data_type)
            if result.success:
                metrics.record_upstream_attempt(operation, transport, "success", duration)
                log.info(
                    f"Endpoint succeeded: {candidate.path}",
                    extra={**attempt, "outcome": "success"},
                )
                return result

            last_failure = result
            metrics.record_upstream_attempt(operation, transport, "unusable_body", duration)
            log.warning(
                f"Endpoint answered without a usable body: {candidate.path} "
                f"({result.first_message})",
                extra={**attempt, "outcome": "unusable_body"},
            )

        log.warning(f"All {len(candidates)} endpoints failed for {operation}")
        messages = [f"All endpoints failed for {operation}"]
        if last_failure is not None:
            messages.extend(last_failure.messages)
        return ApiResult.fail(*messages)
