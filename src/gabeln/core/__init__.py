"""Core domain package for gabeln.

Core contains command parsing, chat state, and the session router without any
Telethon or HTTP-specific code, keeping the business logic portable.
"""
