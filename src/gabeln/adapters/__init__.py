"""Integration adapters for Telegram (Telethon), GitHub, and Giphy."""
