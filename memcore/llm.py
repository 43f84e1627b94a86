# memcore/llm.py
import openai
from memcore.config import OPENAI_API_KEY, OPENAI_COMPLETION_MODEL
from memcore.errors import ProviderError


class CompletionProvider:
    """Implementations raise ProviderError on any service failure."""

    def complete(self, system_prompt: str, user_content: str) -> str:
        raise NotImplementedError


class OpenAICompletionProvider(CompletionProvider):
    def __init__(self, api_key: str = OPENAI_API_KEY, model: str = OPENAI_COMPLETION_MODEL,
                 temperature: float = 0.3, max_tokens: int = 150, client=None):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self._api_key:
                raise ProviderError("OPENAI_API_KEY is not set")
            self._client = openai.OpenAI(api_key=self._api_key)
        return self._client

    def complete(self, system_prompt: str, user_content: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"completion request failed: {exc}") from exc
        return response.choices[0].message.content or ""
