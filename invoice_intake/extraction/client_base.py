from abc import ABC, abstractmethod


class BaseExtractionClient(ABC):
    """Contract for provider-specific document extraction clients."""

    @abstractmethod
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
        """Send the document with the instruction and return the response text."""
