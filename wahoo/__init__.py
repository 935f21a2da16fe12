"""Local WhatsApp web interface backed by a durable message mirror."""

__version__ = "1.0.0"
