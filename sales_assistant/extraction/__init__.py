from sales_assistant.extraction.extractor import PreferenceExtractor
from sales_assistant.extraction.llm_extractor import PromptedExtractor, parse_extraction_json
from sales_assistant.extraction.sanitizer import sanitize_extracted

__all__ = ["PreferenceExtractor", "PromptedExtractor", "parse_extraction_json", "sanitize_extracted"]
