"""ChatGPT correction and translation engine."""

import json
import logging
from typing import Optional, Tuple

import aiohttp

from ..errors import ProviderError
from .base import AbstractCorrectionEngine

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You fix speech-to-text transcripts and translate them.

Correct obvious recognition errors, punctuation and casing in the transcript below
without changing its meaning. Then translate the corrected text into '{target_lang}'.
{source_hint}
Answer with a JSON object: {{"corrected": "...", "translated": "..."}}

Transcript:
{text}"""


class ChatGPTCorrectionEngine(AbstractCorrectionEngine):
    """Sends one chat completion per utterance and parses a JSON answer."""

    DEFAULT_URL = "https://api.openai.com/v1/chat/completions"

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", url: str = DEFAULT_URL):
        """Initialize ChatGPT engine.

        Args:
            api_key: OpenAI API key
            model: ChatGPT model to use
            url: Chat completions endpoint
        """
        super().__init__("chatgpt")
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = url

        logger.info(f"ChatGPTCorrectionEngine initialized with model: {model}")

    def build_prompt(self, text: str, target_lang: str, source_lang: Optional[str] = None) -> str:
        source_hint = f"The speaker's language is '{source_lang}'." if source_lang else \
            "Detect the speaker's language yourself."
        return PROMPT_TEMPLATE.format(text=text, target_lang=target_lang, source_hint=source_hint)

    async def send_prompt(self, prompt: str, temperature: float = 0.2, max_tokens: int = 800) -> str:
        """Send a prompt to ChatGPT and get the response content.

        Raises:
            ProviderError: If the API call fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ProviderError(self.name, f"HTTP {response.status} - {error_text[:200]}",
                                            status=response.status)

                    result = await response.json(content_type=None)
                    return result["choices"][0]["message"]["content"].strip()
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, f"unexpected response shape: {e}") from e

    async def correct_and_translate(self, text: str, target_lang: str,
                                    source_lang: Optional[str] = None) -> Tuple[str, str]:
        content = await self.send_prompt(self.build_prompt(text, target_lang, source_lang))
        try:
            answer = json.loads(content)
        except json.JSONDecodeError as e:
            raise ProviderError(self.name, f"answer is not JSON: {content[:80]!r}") from e

        translated = answer.get("translated") if isinstance(answer, dict) else None
        if not translated:
            raise ProviderError(self.name, "answer has no translation")
        return answer.get("corrected") or text, translated
