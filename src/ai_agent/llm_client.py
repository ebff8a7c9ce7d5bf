"""
Chat completion client for the Voice Scheduling Assistant
"""
import logging
import time
from typing import Dict, Any, List, Optional

from openai import OpenAI, APIConnectionError, APIStatusError

from config.settings import Config
from src.ai_agent.tools import get_chat_tools
from src.errors import ConfigurationError, EmptyResponseError, UpstreamError

logger = logging.getLogger(__name__)


class ChatReply:
    """Either free text or a single tool invocation requested by the model"""

    TEXT = "text"
    TOOL_CALL = "tool_call"

    def __init__(self, kind: str, content: str = "", name: str = None,
                 arguments: str = None, tool_call_id: str = None,
                 raw_assistant_message: Dict[str, Any] = None):
        self.kind = kind
        self.content = content
        self.name = name
        self.arguments = arguments
        self.tool_call_id = tool_call_id
        self.raw_assistant_message = raw_assistant_message or {}

    @classmethod
    def text(cls, content: str, raw_assistant_message: Dict[str, Any] = None) -> "ChatReply":
        return cls(cls.TEXT, content=content, raw_assistant_message=raw_assistant_message)

    @classmethod
    def tool_call(cls, name: str, arguments: str, tool_call_id: str,
                  raw_assistant_message: Dict[str, Any]) -> "ChatReply":
        return cls(cls.TOOL_CALL, name=name, arguments=arguments,
                   tool_call_id=tool_call_id, raw_assistant_message=raw_assistant_message)

    @property
    def is_tool_call(self) -> bool:
        return self.kind == self.TOOL_CALL

    def to_api_dict(self) -> Dict[str, Any]:
        """Wire shape returned by POST /api/chat"""
        if self.is_tool_call:
            return {
                "type": "function_call",
                "functionName": self.name,
                "arguments": self.arguments,
                "message": self.raw_assistant_message,
            }
        return {
            "type": "message",
            "content": self.content,
            "message": self.raw_assistant_message,
        }

    @classmethod
    def from_api_dict(cls, data: Dict[str, Any]) -> "ChatReply":
        message = data.get("message") or {}
        if data.get("type") == "function_call":
            tool_calls = message.get("tool_calls") or [{}]
            return cls.tool_call(
                name=data.get("functionName"),
                arguments=data.get("arguments"),
                tool_call_id=tool_calls[0].get("id"),
                raw_assistant_message=message,
            )
        return cls.text(data.get("content") or "", message)

    def __repr__(self):
        if self.is_tool_call:
            return f"ChatReply(tool_call={self.name!r}, id={self.tool_call_id!r})"
        return f"ChatReply(text={self.content[:40]!r})"


class ChatClient:
    """Sends the transcript plus system prompt and tool schema to the chat endpoint"""

    def __init__(self, api_key: str = None, base_url: str = None, model_name: str = None):
        self.config = Config()
        self.api_key = api_key if api_key is not None else self.config.GROQ_API_KEY
        self.base_url = base_url or self.config.CHAT_BASE_URL
        self.model_name = model_name or self.config.CHAT_MODEL
        self.temperature = self.config.TEMPERATURE
        self.max_tokens = self.config.MAX_TOKENS
        self._client: Optional[OpenAI] = None

        self._total_requests = 0

    @property
    def client(self) -> OpenAI:
        if not self.api_key:
            raise ConfigurationError(
                "GROQ_API_KEY not configured. Get a free key at https://console.groq.com"
            )

        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.config.LLM_TIMEOUT,
                max_retries=self.config.LLM_MAX_RETRIES,
            )
            logger.info(f"Initialized chat client: {self.model_name} @ {self.base_url}")
        return self._client

    def build_messages(self, history: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [{"role": "system", "content": self.config.build_system_prompt()}] + list(history)

    def complete(self, history: List[Dict[str, Any]]) -> ChatReply:
        """Run one chat completion over the full transcript history"""
        client = self.client
        self._total_requests += 1
        start_time = time.time()

        try:
            completion = client.chat.completions.create(
                model=self.model_name,
                messages=self.build_messages(history),
                tools=get_chat_tools(),
                tool_choice="auto",
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"Chat API error: {e.status_code} - {body}")
            raise UpstreamError(f"LLM API error ({e.status_code}): {body}",
                                status_code=e.status_code, body=body) from e
        except APIConnectionError as e:
            logger.error(f"Chat API connection failed: {e}")
            raise UpstreamError(f"LLM API connection error: {e}") from e

        response_time = time.time() - start_time
        logger.info(f"Chat completion #{self._total_requests}: {response_time:.2f}s")

        if not completion.choices:
            raise EmptyResponseError("No response from model")

        message = completion.choices[0].message
        raw_message = message.model_dump(exclude_none=True)
        raw_message["content"] = message.content

        if message.tool_calls:
            if len(message.tool_calls) > 1:
                logger.warning(f"Model requested {len(message.tool_calls)} tool calls, using the first")
                # every tool_call id in history needs a matching tool message
                raw_message["tool_calls"] = raw_message["tool_calls"][:1]
            tool_call = message.tool_calls[0]
            logger.info(f"🔧 Tool call requested: {tool_call.function.name}")
            return ChatReply.tool_call(
                name=tool_call.function.name,
                arguments=tool_call.function.arguments,
                tool_call_id=tool_call.id,
                raw_assistant_message=raw_message,
            )

        return ChatReply.text(message.content or "", raw_message)
