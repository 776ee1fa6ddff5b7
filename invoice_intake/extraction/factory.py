from typing import Any, ClassVar

from invoice_intake.config.settings import Settings
from invoice_intake.extraction.example_client_adapter import ExampleClientAdapter
from invoice_intake.extraction.extractor import InvoiceExtractor
from invoice_intake.extraction.openai_client_adapter import OpenAIClientAdapter


class ExtractionClientFactory:
    """Creates the configured invoice extractor."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> InvoiceExtractor:
        """Create a configured extractor from application settings."""
        provider = settings.extraction_provider.lower()
        if provider == "example":
            return InvoiceExtractor(
                client=ExampleClientAdapter(),
                model="example",
                temperature=0.0,
            )
        base_url = cls._resolve_base_url(provider, settings)
        client = OpenAIClientAdapter(
            api_key=cls._provider_setting(provider, "api_key", settings),
            timeout_seconds=cls._provider_setting(provider, "timeout_seconds", settings) or 60,
            base_url=base_url,
        )
        return InvoiceExtractor(
            client=client,
            model=cls._provider_setting(provider, "model_name", settings),
            temperature=settings.extraction_temperature,
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = (settings.extraction_openai_compatible_base_url or "").strip()
            if not url:
                raise ValueError(
                    "extraction_openai_compatible_base_url is required for "
                    "extraction_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown extraction provider '{provider}'. Choose from: {supported}"
        )

    @staticmethod
    def _provider_setting(provider: str, name: str, settings: Settings) -> Any:
        return getattr(settings, f"extraction_{provider}_{name}")
