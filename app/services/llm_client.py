"""LLM client producing structured README summaries.

Anthropic models are preferred when an Anthropic key is configured; otherwise
any OpenAI-compatible chat completions endpoint is used. Either way the reply
is constrained to the ``RepositoryDigest`` JSON schema.
"""

import json
import logging
from typing import Any

import anthropic
import openai
from anthropic import Anthropic
from openai import OpenAI
from pydantic import ValidationError as PydanticValidationError

from app import errors
from app.config import LLMConfig
from app.models.summary import RepositoryDigest

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Summarize this github repository from this readme file content:\n\n"
    "{readme_content}"
)

# Output schema name; Anthropic receives the schema as a forced tool call
DIGEST_TOOL = "repository_summary"

DIGEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {
            "type": "string",
            "description": RepositoryDigest.model_fields["summary"].description,
        },
        "cool_facts": {
            "type": "array",
            "items": {"type": "string"},
            "description": RepositoryDigest.model_fields["cool_facts"].description,
        },
    },
    "required": ["summary", "cool_facts"],
    "additionalProperties": False,
}

BILLING_MESSAGE = (
    "Insufficient API credits. The model provider account has insufficient "
    "credits to process this request. Please add credits to the provider "
    "account and try again."
)


class CreditExhaustionDetector:
    """Decides whether a provider error means the account is out of credit.

    Providers report this inconsistently, so the structured error code is
    checked first and the error text is pattern-matched as a fallback.
    """

    codes: tuple[str, ...] = ("insufficient_quota",)
    patterns: tuple[str, ...] = (
        "credit balance",
        "insufficient_quota",
        "insufficient credits",
    )

    def is_credit_error(self, exc: Exception) -> bool:
        code = getattr(exc, "code", None)
        if code in self.codes:
            return True

        texts = [str(exc)]
        body = getattr(exc, "body", None)
        if body is not None:
            texts.append(json.dumps(body, default=str))
        haystack = " ".join(texts).lower()
        return any(pattern in haystack for pattern in self.patterns)


class ReadmeSummarizer:
    """Summarizes README text into ``summary`` and ``cool_facts``."""

    def __init__(
        self,
        config: LLMConfig,
        client: Anthropic | OpenAI | None = None,
        detector: CreditExhaustionDetector | None = None,
    ) -> None:
        self._config = config
        self._detector = detector or CreditExhaustionDetector()
        self._provider = config.provider or "openai"
        self._client = client
        if self._client is None and config.provider == "anthropic":
            self._client = Anthropic(
                api_key=config.anthropic_api_key.strip(),
                timeout=config.timeout_seconds,
                max_retries=0,
            )
        elif self._client is None and config.provider == "openai":
            self._client = OpenAI(
                api_key=config.api_key.strip(),
                base_url=config.base_url,
                timeout=config.timeout_seconds,
                max_retries=0,
            )

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def provider(self) -> str:
        return self._provider

    def summarize(self, readme_content: str) -> RepositoryDigest:
        """Run the model over README text.

        Raises:
            CredentialsMissingError: No model API key is configured.
            InsufficientCreditError: The provider reports exhausted credit.
            SummarizationFailedError: Any other provider or parsing failure.
        """
        if self._client is None:
            raise errors.CredentialsMissingError(
                "No LLM API key found. Set ANTHROPIC_API_KEY or OPENAI_API_KEY."
            )

        max_chars = self._config.max_readme_chars
        if len(readme_content) > max_chars:
            logger.info(
                "Truncating README from %d to %d characters",
                len(readme_content),
                max_chars,
            )
            readme_content = readme_content[:max_chars]

        prompt = PROMPT_TEMPLATE.format(readme_content=readme_content)
        try:
            if self._provider == "anthropic":
                return self._summarize_with_anthropic(prompt)
            return self._summarize_with_openai(prompt)
        except (openai.AuthenticationError, anthropic.AuthenticationError) as e:
            logger.error("LLM authentication failed: %s", e)
            raise errors.SummarizationFailedError(
                "LLM API authentication failed. Check that the configured API "
                "key is valid.",
                details=str(e),
            ) from e
        except (openai.OpenAIError, anthropic.AnthropicError) as e:
            if self._detector.is_credit_error(e):
                logger.error("LLM provider reports insufficient credit: %s", e)
                raise errors.InsufficientCreditError(
                    BILLING_MESSAGE, details=str(e)
                ) from e
            logger.error("LLM call failed: %s", e, exc_info=True)
            raise errors.SummarizationFailedError(
                "Error processing README content with LLM", details=str(e)
            ) from e
        except PydanticValidationError as e:
            logger.error("LLM returned malformed structured output: %s", e)
            raise errors.SummarizationFailedError(
                "LLM returned malformed structured output", details=str(e)
            ) from e

    def _summarize_with_openai(self, prompt: str) -> RepositoryDigest:
        response = self._client.chat.completions.create(
            model=self._config.model,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            messages=[{"role": "user", "content": prompt}],
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": DIGEST_TOOL,
                    "schema": DIGEST_SCHEMA,
                    "strict": True,
                },
            },
        )
        content = response.choices[0].message.content or ""
        return RepositoryDigest.model_validate_json(content)

    def _summarize_with_anthropic(self, prompt: str) -> RepositoryDigest:
        response = self._client.messages.create(
            model=self._config.anthropic_model,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            messages=[{"role": "user", "content": prompt}],
            tools=[
                {
                    "name": DIGEST_TOOL,
                    "description": "Record the summary of a GitHub repository",
                    "input_schema": DIGEST_SCHEMA,
                }
            ],
            tool_choice={"type": "tool", "name": DIGEST_TOOL},
        )
        for block in response.content:
            if block.type == "tool_use":
                return RepositoryDigest.model_validate(block.input)

        raise errors.SummarizationFailedError(
            "LLM returned malformed structured output",
            details=f"no {DIGEST_TOOL} tool call in the reply",
        )
