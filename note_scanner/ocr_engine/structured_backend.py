"""
Structured OCR Backend.

Sends the note image to a vision-capable chat completion model (OpenAI
``gpt-4o`` by default) together with a fixed instruction asking for the
supplier, note number, date and one ``商品名: X / 数量: N`` line per
product. The model's reply is returned as-is for the extractor.

Requirements:
    - openai
    - OpenAI API key

Author: ML Engineering Team
"""

import time
from typing import Any, Dict, List

import openai
from openai import OpenAI

from config import get_config
from note_scanner.utils.logger import get_logger
from note_scanner.utils.exceptions import ProviderError
from .base import NO_TEXT_MESSAGE

# Initialize module logger
logger = get_logger(__name__)


DEFAULT_BASE_URL = "https://api.openai.com/v1"

INSTRUCTION_PROMPT = """この納品書の画像からテキストを読み取ってください。
以下の情報を抽出してください：
- 仕入先名/会社名
- 納品書番号
- 日付
- 商品名と数量（すべての商品行）

商品行は以下の形式で出力してください：
商品名: [商品名] / 数量: [数量]

できるだけ正確に読み取ってください。"""

DEFAULT_FAILURE_MESSAGE = "OpenAI API呼び出しに失敗しました"


def _status_error_message(error: openai.APIStatusError) -> str:
    """``message`` of the API error body, else the SDK's own message."""
    body = error.body
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return error.message or DEFAULT_FAILURE_MESSAGE


class StructuredBackend:
    """
    Vision chat backend returning pre-formatted line items.

    Attributes:
        api_key: OpenAI API key.
        base_url: API root the client talks to.
        model: Vision-capable model name.
        max_tokens: Completion token limit.
        detail: Image detail level sent with the image.
        timeout: Request timeout in seconds.
        client: ``openai.OpenAI`` client, created without SDK retries.

    Example:
        >>> backend = StructuredBackend(api_key="sk-...")
        >>> text = backend.recognize(b64, "data:image/jpeg;base64,...")
    """

    name = "structured"

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key
        self.base_url = get_config("ocr.openai.base_url", DEFAULT_BASE_URL)
        self.model = get_config("ocr.openai.model", "gpt-4o")
        self.max_tokens = get_config("ocr.openai.max_tokens", 4096)
        self.detail = get_config("ocr.openai.detail", "high")
        self.prompt = get_config("ocr.openai.prompt") or INSTRUCTION_PROMPT
        self.timeout = get_config("ocr.timeout", 60)

        # a failed note is resubmitted by the operator, never retried here
        self.client = OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

        logger.debug(f"StructuredBackend initialized (model={self.model})")

    def build_messages(self, image_data_url: str) -> List[Dict[str, Any]]:
        """Chat messages for one image."""
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": self.prompt},
                    {
                        "type": "image_url",
                        "image_url": {"url": image_data_url, "detail": self.detail},
                    },
                ],
            }
        ]

    def recognize(self, image_data: str, image_data_url: str) -> str:
        """
        Recognize a note image.

        Args:
            image_data: Base64 payload (unused; the data URL carries it).
            image_data_url: ``data:<mime>;base64,...`` form of the image.

        Returns:
            The model's text reply.

        Raises:
            ProviderError: On connection failure, API error or empty reply.
        """
        start_time = time.time()
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(image_data_url),
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            message = _status_error_message(e)
            logger.error(f"OpenAI HTTP {e.status_code}: {message}")
            raise ProviderError(message, backend=self.name, status_code=e.status_code)
        except openai.APIConnectionError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise ProviderError(f"{DEFAULT_FAILURE_MESSAGE}: {e}", backend=self.name)
        except openai.OpenAIError as e:
            logger.error(f"OpenAI call failed: {e}")
            raise ProviderError(DEFAULT_FAILURE_MESSAGE, backend=self.name)

        content = ''
        if response.choices:
            content = response.choices[0].message.content or ''

        if not content:
            raise ProviderError(NO_TEXT_MESSAGE, backend=self.name)

        logger.info(
            f"OpenAI returned {len(content)} chars in {time.time() - start_time:.2f}s"
        )
        return content
