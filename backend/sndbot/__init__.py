"""Discord bot linking members to verified World of Warcraft characters."""

__version__ = "0.1.0"
