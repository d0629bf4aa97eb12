"""Core domain package for minutebot.

Core contains line classification, meeting state and comment reconciliation
without any Telegram or GitHub specific code, keeping the business logic
portable.
"""
