"""kbchat — knowledge-base backed customer-support chat service."""

__version__ = "0.1.0"
