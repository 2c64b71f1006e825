import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from app.core.config import settings
from app.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class BaseAIService:
    """Base service to interact with an OpenAI-compatible chat completion API"""

    def __init__(self):
        self.api_key = settings.ai_api_key
        self.api_endpoint = settings.ai_api_endpoint
        self.model = settings.ai_model
        self.request_timeout = settings.ai_request_timeout

        # No automatic retries: a failed call degrades to the offline fallbacks
        self.client = AsyncOpenAI(
            api_key=self.api_key or "not-configured",
            base_url=(
                self.api_endpoint.replace("/chat/completions", "")
                if self.api_endpoint
                else None
            ),
            timeout=self.request_timeout,
            max_retries=settings.ai_max_retries,
        )

        # Validate configuration
        if not self.api_key:
            logger.warning("AI_API_KEY not configured. AI features will be disabled.")
        if not self.api_endpoint:
            logger.warning(
                "AI_API_ENDPOINT not configured. AI features will be disabled."
            )

    async def close(self):
        """Close the OpenAI client and release resources"""
        await self.client.close()

    def is_configured(self) -> bool:
        """Check if AI service is properly configured"""
        return bool(self.api_key and self.api_endpoint and self.model)

    def _extract_json_from_response(self, text: str) -> Any:
        """
        Extract and parse JSON from AI response that may contain markdown formatting

        Args:
            text: Raw text response from AI that may contain ```json``` markers

        Returns:
            Parsed JSON object (dict or list)

        Raises:
            UpstreamUnavailableError: If JSON parsing fails
        """
        # Pattern matches ```json\n{...}\n``` or ```\n{...}\n```
        json_pattern = r"```(?:json)?\s*\n?([\s\S]*?)\n?```"
        match = re.search(json_pattern, text)
        json_text = match.group(1).strip() if match else text.strip()

        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON from AI response: {str(e)}")
            logger.debug(f"Full response: {text}")

            if not text.strip().endswith("}") and not text.strip().endswith("]"):
                logger.error(
                    "Response appears to be truncated - missing closing bracket"
                )
                raise UpstreamUnavailableError("AI response was incomplete")

            raise UpstreamUnavailableError(
                f"Failed to parse AI response as JSON: {str(e)}"
            )

    async def _make_request(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Dict:
        """
        Make a chat completion request bounded by the configured timeout

        Raises:
            UpstreamUnavailableError: If the service is not configured, times out or fails
        """
        if not self.is_configured():
            raise UpstreamUnavailableError(
                "AI service is not configured. Please check API key and endpoint."
            )

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"AI API request timed out after {self.request_timeout} seconds"
            )
            raise UpstreamUnavailableError("AI service request timed out")
        except Exception as e:
            error_msg = str(e)
            logger.error(f"AI API request error: {error_msg}")

            if "rate limit" in error_msg.lower():
                raise UpstreamUnavailableError("AI service rate limit exceeded")
            elif (
                "authentication" in error_msg.lower() or "api key" in error_msg.lower()
            ):
                raise UpstreamUnavailableError("Invalid AI service API key")
            raise UpstreamUnavailableError(
                f"Failed to connect to AI service: {error_msg}"
            )

        return response.model_dump()

    async def generate_completion(
        self,
        prompt: str,
        system_message: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a text completion from AI

        Args:
            prompt: The user prompt/question
            system_message: Optional system message to set context
            temperature: Controls randomness (0.0 to 2.0)
            max_tokens: Maximum tokens in response

        Returns:
            Generated text response
        """
        messages = []

        if system_message:
            messages.append({"role": "system", "content": system_message})

        messages.append({"role": "user", "content": prompt})

        response = await self._make_request(
            messages=messages, temperature=temperature, max_tokens=max_tokens
        )

        try:
            completion = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Failed to parse AI response: {str(e)}")
            raise UpstreamUnavailableError(
                f"Failed to parse AI response. Model: {self.model}, Error: {str(e)}"
            )

        if not completion:
            raise UpstreamUnavailableError("No response from AI service")

        return completion.strip()

    async def generate_json(
        self,
        prompt: str,
        system_message: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Any:
        """Generate a completion and decode it as JSON"""
        text = await self.generate_completion(
            prompt,
            system_message=system_message,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return self._extract_json_from_response(text)
