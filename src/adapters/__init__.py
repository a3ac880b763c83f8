"""Adapters that bind the core ports to Telethon and aiohttp."""
