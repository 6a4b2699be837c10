"""WhatsApp context relay."""

__version__ = "0.1.0"
