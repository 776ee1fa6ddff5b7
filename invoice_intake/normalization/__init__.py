from invoice_intake.normalization.normalizer import FieldNormalizer
from invoice_intake.normalization.parser import parse_extraction_text

__all__ = ["FieldNormalizer", "parse_extraction_text"]
