"""Core domain package for telerelay.

Core contains the relay pipeline, progress plumbing and staging logic without
any Telegram or HTTP-library specific code, keeping the business logic portable.
"""
