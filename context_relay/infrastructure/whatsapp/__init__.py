from .client import WhatsAppClient, extract_error_code

__all__ = ["WhatsAppClient", "extract_error_code"]
