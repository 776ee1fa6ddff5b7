from invoice_intake.extraction.client_base import BaseExtractionClient
from invoice_intake.extraction.extractor import InvoiceExtractor
from invoice_intake.extraction.factory import ExtractionClientFactory

__all__ = ["BaseExtractionClient", "ExtractionClientFactory", "InvoiceExtractor"]
