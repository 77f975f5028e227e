"""Schema-validated event extraction from a journal narrative."""

from typing import Optional, Sequence
from uuid import UUID

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from daylight.config import settings
from daylight.core.exceptions import ExtractionError, ValidationError
from daylight.core.unified_llm import UnifiedLLMClient, create_llm_client_from_settings
from daylight.schemas.extraction import (
    EvidenceSummary,
    ExtractionEnvelope,
    ExtractionPayload,
    extraction_json_schema,
)
from daylight.services.base_service import BaseService
from daylight.services.extraction.context_builder import ExtractionContext, ExtractionContextBuilder
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)

SCHEMA_NAME = "extraction"


def build_llm_client() -> UnifiedLLMClient:
    """LLM client configured from ``settings.llm``.

    Raises:
        ConfigurationError: If the provider's API key is not set
    """
    llm = settings.llm
    return create_llm_client_from_settings(
        provider=llm.provider,
        openai_api_key=llm.openai_api_key,
        openai_api_url=llm.openai_api_url,
        openai_model=llm.openai_model,
        openrouter_api_key=llm.openrouter_api_key,
        openrouter_api_url=llm.openrouter_api_url,
        openrouter_model=llm.openrouter_model,
        timeout=llm.timeout_seconds,
        max_retries=llm.max_retries,
        reasoning_effort=llm.reasoning_effort,
    )


class EventExtractor(BaseService):
    """Turns one narrative into an ``ExtractionPayload``.

    Callers holding a prebuilt ``context`` need no session, which lets the
    activity release its connection before the model call. Parse failures are
    not retried here. Transport retries happen in the HTTP client and
    whole-step retries in the Temporal activity policy.
    """

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        llm_client: Optional[UnifiedLLMClient] = None,
        context_builder: Optional[ExtractionContextBuilder] = None,
    ):
        super().__init__()
        self._llm_client = llm_client
        if context_builder is None and session is not None:
            context_builder = ExtractionContextBuilder(session)
        self.context_builder = context_builder

    @property
    def llm_client(self) -> UnifiedLLMClient:
        if self._llm_client is None:
            self._llm_client = build_llm_client()
        return self._llm_client

    async def extract(
        self,
        user_id: UUID,
        event_text: str,
        reference_date: Optional[str] = None,
        timezone: Optional[str] = None,
        evidence: Sequence[EvidenceSummary] = (),
        context: Optional[ExtractionContext] = None,
    ) -> ExtractionPayload:
        return await self.execute(
            user_id=user_id,
            event_text=event_text,
            reference_date=reference_date,
            timezone=timezone,
            evidence=evidence,
            context=context,
        )

    def validate(self, user_id: UUID, event_text: str, context=None, **kwargs):
        # Resolve the client first so a missing key fails before anything else.
        _ = self.llm_client
        if not event_text or not event_text.strip():
            raise ValidationError("event_text is required")
        if context is None and self.context_builder is None:
            raise ValidationError("An extraction context or a database session is required")

    async def run(
        self,
        user_id: UUID,
        event_text: str,
        reference_date: Optional[str] = None,
        timezone: Optional[str] = None,
        evidence: Sequence[EvidenceSummary] = (),
        context: Optional[ExtractionContext] = None,
    ) -> ExtractionPayload:
        if context is None:
            context = await self.context_builder.build(
                user_id=user_id,
                reference_date=reference_date,
                timezone=timezone,
                evidence=evidence,
            )

        LOGGER.info(
            f"Extracting events for user {user_id}",
            extra={
                "user_id": str(user_id),
                "timezone": context.timezone,
                "reference_date": context.reference_date,
                "evidence_count": len(evidence),
            }
        )

        content = await self.llm_client.generate_content(
            contents=event_text.strip(),
            system_instruction=context.system_prompt,
            response_schema=extraction_json_schema(),
            schema_name=SCHEMA_NAME,
        )
        if not content or not content.strip():
            raise ExtractionError("Event extraction returned empty response.")

        try:
            envelope = ExtractionEnvelope.model_validate_json(content)
        except SchemaValidationError as e:
            LOGGER.error(f"Extraction response failed schema validation: {e}")
            raise ExtractionError("Event extraction returned an invalid response.", e) from e

        payload = envelope.extraction
        LOGGER.info(
            f"Extracted {len(payload.events)} events and {len(payload.action_items)} action items",
            extra={"user_id": str(user_id)}
        )
        return payload
