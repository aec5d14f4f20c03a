"""Routing Advisor - Text generation through Azure OpenAI or OpenAI"""
from typing import Optional, Union
from openai import AzureOpenAI, OpenAI

from ..config.settings import settings
from ..domain.errors import OpenAIError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RoutingAdvisor:
    """
    Thin adapter over the OpenAI SDK.

    Uses Azure OpenAI when an endpoint and key are configured, otherwise the
    public OpenAI API when an API key is set. Every failure surfaces as
    ``OpenAIError``; callers decide how to degrade.
    """

    def __init__(self):
        self.client: Optional[Union[AzureOpenAI, OpenAI]] = None
        self.model = settings.openai_model

        if settings.azure_openai_endpoint and settings.azure_openai_api_key:
            self.client = AzureOpenAI(
                azure_endpoint=settings.azure_openai_endpoint,
                api_key=settings.azure_openai_api_key,
                api_version=settings.azure_openai_api_version,
                timeout=settings.routing_advisor_timeout_seconds,
            )
            self.model = settings.azure_openai_deployment
        elif settings.openai_api_key:
            self.client = OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.routing_advisor_timeout_seconds,
            )

    @property
    def configured(self) -> bool:
        return self.client is not None

    def generate(self, prompt: str) -> str:
        """
        Generate a completion for a single user prompt

        Raises:
            OpenAIError: not configured, request failed, or empty response
        """
        if not self.client:
            raise OpenAIError("AI service is not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.2,
                max_tokens=800,
            )
        except Exception as e:
            logger.error(f"OpenAI request failed: {e}")
            raise OpenAIError(f"AI request failed: {e}")

        if not response.choices:
            raise OpenAIError("AI returned no response choices")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise OpenAIError("AI returned empty response")

        return content


# Global advisor instance
_advisor: Optional[RoutingAdvisor] = None


def get_routing_advisor() -> RoutingAdvisor:
    """Get global routing advisor instance"""
    global _advisor
    if _advisor is None:
        _advisor = RoutingAdvisor()
    return _advisor
