# infra/llm_client.py
import logging
from typing import Any, Dict, Sequence, Union

import requests

from sqlsage.config.settings import Settings, settings as default_settings
from sqlsage.domain.errors import ConfigurationError, ProviderError
from sqlsage.domain.models import Message

logger = logging.getLogger(__name__)

# settings that may change at runtime; api_key is write-only
CONFIG_FIELDS = ("url", "model", "temperature", "max_output_tokens", "timeout")

class LLMClient:
    """Chat-completions client for any OpenAI-compatible endpoint."""

    def __init__(self, cfg: Settings | None = None, session: requests.Session | None = None):
        cfg = cfg or default_settings
        self.url = f"{cfg.LLM_API_BASE.rstrip('/')}{cfg.CHAT_PATH}"
        self.api_key = cfg.LLM_API_KEY
        self.model = cfg.LLM_MODEL
        self.temperature = cfg.TEMPERATURE
        self.max_output_tokens = cfg.MAX_OUTPUT_TOKENS
        self.timeout = cfg.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def get_config(self) -> Dict[str, Any]:
        return {field: getattr(self, field) for field in CONFIG_FIELDS}

    def update_config(self, **changes: Any) -> None:
        unknown = set(changes) - set(CONFIG_FIELDS) - {"api_key"}
        if unknown:
            raise ConfigurationError(f"Unknown LLM config fields: {sorted(unknown)}")
        for field, value in changes.items():
            setattr(self, field, value)
        logger.info(f"LLM config updated: {sorted(changes)}")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def submit_prompt(self, messages: Sequence[Union[Message, Dict]]) -> str:
        payload = {
            "model": self.model,
            "messages": [m.model_dump() if isinstance(m, Message) else m for m in messages],
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
        }
        logger.debug(f"Submitting {len(payload['messages'])} messages to {self.model}")
        try:
            resp = self.session.post(self.url, headers=self._headers(), json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            return data["choices"][0]["message"]["content"] or ""
        except requests.RequestException as e:
            raise ProviderError(f"LLM generation failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(f"LLM returned an unexpected payload: {e}") from e
