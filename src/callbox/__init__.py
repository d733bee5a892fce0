"""
Keyway callbox webhook.

Answers Twilio voice webhooks for the building callbox and asks the Keyway
access-control service whether an entered code may open the door.
"""

__version__ = "0.1.0"
