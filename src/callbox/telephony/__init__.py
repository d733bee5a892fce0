"""
Telephony package.

Twilio-facing pieces: inbound call events, request authentication and TwiML
building blocks.
"""

__all__ = [
    "events",
    "security",
    "twiml",
]
