import base64

import httpx
import openai

from invoice_intake.admission.models import PDF_MIME_TYPE
from invoice_intake.extraction.client_base import BaseExtractionClient
from invoice_intake.extraction.exceptions import ExtractionError, ExtractionNetworkError


class OpenAIClientAdapter(BaseExtractionClient):
    """Extraction client built on the OpenAI-compatible multimodal chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def create_completion(
        self,
        *,
        model: str,
        temperature: float,
        instruction: str,
        content: bytes,
        mime_type: str,
        file_name: str,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format={"type": "json_object"},
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": instruction},
                            self._document_part(content, mime_type, file_name),
                        ],
                    },
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ExtractionNetworkError(
                f"AI provider network error: {exc}"
            ) from exc
        except openai.APIError as exc:
            raise ExtractionNetworkError(
                f"AI provider API error: {exc}"
            ) from exc

        if not response.choices:
            raise ExtractionError("AI returned no choices")
        text = response.choices[0].message.content
        if text is None:
            raise ExtractionError("AI returned empty response")
        return text

    @staticmethod
    def _document_part(content: bytes, mime_type: str, file_name: str) -> dict[str, object]:
        data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        if mime_type == PDF_MIME_TYPE:
            return {
                "type": "file",
                "file": {"filename": file_name, "file_data": data_url},
            }
        return {"type": "image_url", "image_url": {"url": data_url}}
