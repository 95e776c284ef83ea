"""Response envelope resolution.

The upstream answers in one of three shapes, and which one depends on the
endpoint variant that served the request:

    wrapped:  {"success": true, "data": <payload>, "message": [{"text": ["..."]}]}
    bare:     <payload>
    generic:  {"data": <payload>}          (optional sibling "success")

``resolve_envelope`` tries them in that order and never raises.
"""

import json
import logging
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import BeforeValidator, TypeAdapter, ValidationError

from backoffice import metrics
from backoffice.config import settings
from backoffice.upstream.flexible import decode_scalar
from backoffice.upstream.models import ApiResult, UpstreamRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

PARSE_FAILED_MESSAGE = "Failed to parse response"
EMPTY_RESPONSE_MESSAGE = "Empty response"


def _coerce_success(value: Any) -> bool:
    decoded = decode_scalar(value)
    return decoded is not None and decoded.lower() in ("true", "1")


def _coerce_text(value: Any) -> Optional[list[str]]:
    if isinstance(value, list):
        decoded = (decode_scalar(item) for item in value)
        return [text for text in decoded if text]
    text = decode_scalar(value)
    return [text] if text else None


def _coerce_message_items(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, list):
        value = [value]
    items = []
    for item in value:
        if isinstance(item, dict):
            items.append(item)
        else:
            # A plain string where a {"text": [...]} item was expected
            items.append({"Text": item})
    return items


class MessageItem(UpstreamRecord):
    text: Annotated[Optional[list[str]], BeforeValidator(_coerce_text)] = None


class Envelope(UpstreamRecord, Generic[T]):
    success: Annotated[bool, BeforeValidator(_coerce_success)] = False
    data: Optional[T] = None
    message: Annotated[Optional[list[MessageItem]], BeforeValidator(_coerce_message_items)] = None

    def texts(self) -> list[str]:
        return [text for item in self.message or [] for text in item.text or []]


_ADAPTERS: dict[Any, TypeAdapter] = {}


def _adapter(tp: Any) -> TypeAdapter:
    adapter = _ADAPTERS.get(tp)
    if adapter is None:
        adapter = TypeAdapter(tp)
        _ADAPTERS[tp] = adapter
    return adapter


def _find_key(doc: dict, name: str) -> Optional[str]:
    for key in doc:
        if isinstance(key, str) and key.lower() == name:
            return key
    return None


def upstream_messages(doc: Any) -> list[str]:
    """Pull message texts (``message[].text[]`` or an ``errors`` list) out of a document."""
    if not isinstance(doc, dict):
        return []

    texts: list[str] = []
    if _find_key(doc, "message") is not None:
        try:
            texts.extend(Envelope[Any].model_validate(doc).texts())
        except ValidationError:
            pass

    errors_key = _find_key(doc, "errors")
    if errors_key is not None:
        texts.extend(_coerce_text(doc[errors_key]) or [])
    return texts


def _truncate(body: str) -> str:
    limit = settings.parse_failure_log_chars
    return body if len(body) <= limit else body[:limit] + "..."


def _is_payload(value: Any) -> bool:
    """A single record that matched none of its fields is an error body, not data."""
    if value is None:
        return False
    if isinstance(value, UpstreamRecord):
        return bool(value.model_fields_set)
    return True


def resolve_envelope(body: Optional[str], data_type: Any) -> ApiResult:
    """
    Resolve a raw response body into a typed result.

    Args:
        body: Raw response text
        data_type: Payload type, e.g. ``list[Product]`` or ``Customer``

    Returns:
        ApiResult; on failure ``success`` is False and ``messages`` explains why
    """
    if body is None or not body.strip():
        metrics.record_envelope_stage("empty")
        return ApiResult.fail(EMPTY_RESPONSE_MESSAGE)

    logger.debug(f"Parsing response, length: {len(body)}")

    try:
        doc = json.loads(body)
    except ValueError as e:
        doc = None
        logger.debug(f"Response is not JSON: {e}")
    else:
        is_object = isinstance(doc, dict)
        has_success = is_object and _find_key(doc, "success") is not None
        has_data = is_object and _find_key(doc, "data") is not None

        # 1. Wrapped envelope
        if has_success:
            try:
                wrapped = _adapter(Envelope[data_type]).validate_python(doc)
            except ValidationError as e:
                logger.debug(f"Wrapped format parse failed: {e.error_count()} errors")
            else:
                if wrapped.data is not None:
                    logger.debug("Wrapped format parsed successfully")
                    metrics.record_envelope_stage("wrapped")
                    return ApiResult(success=wrapped.success, data=wrapped.data, messages=wrapped.texts())

        # 2. Bare payload; an object with envelope keys is never a bare payload
        if not (has_success or has_data):
            try:
                direct = _adapter(data_type).validate_python(doc)
            except ValidationError as e:
                logger.debug(f"Direct format parse failed: {e.error_count()} errors")
            else:
                if _is_payload(direct):
                    logger.debug("Direct format parsed successfully")
                    metrics.record_envelope_stage("direct")
                    return ApiResult.ok(direct)

        # 3. Generic document with a top-level data key
        if has_data:
            raw_data = doc[_find_key(doc, "data")]
            if raw_data is not None:
                try:
                    data = _adapter(data_type).validate_python(raw_data)
                except ValidationError as e:
                    logger.debug(f"Data property parse failed: {e.error_count()} errors")
                else:
                    if _is_payload(data):
                        success = _coerce_success(doc[_find_key(doc, "success")]) if has_success else True
                        logger.debug("Data property parsed successfully")
                        metrics.record_envelope_stage("data")
                        return ApiResult(success=success, data=data, messages=upstream_messages(doc))

    metrics.record_envelope_stage("failed")
    logger.error(f"All parsing failed. Raw response: {_truncate(body)}")
    return ApiResult.fail(
        f"{PARSE_FAILED_MESSAGE}. Length: {len(body)}",
        *upstream_messages(doc),
    )
