"""TwiML building blocks for the callbox."""

from typing import Union

from twilio.twiml.voice_response import Gather, VoiceResponse

from callbox.config import CallboxConfig

TWIML_MEDIA_TYPE = "application/xml"

# The callbox speaker is outdoors next to a street.
SPEECH_VOLUME = "x-loud"


def say(parent: Union[VoiceResponse, Gather], message: str) -> None:
    """Speak ``message`` at callbox volume."""
    speech = parent.say()
    speech.prosody(message, volume=SPEECH_VOLUME)


def unlock(response: VoiceResponse, config: CallboxConfig) -> None:
    """Trigger the door to unlock via a DTMF tone."""
    response.pause(length=config.unlock_pause_seconds)
    response.play(digits=config.unlock_digits)


def dial_fallback(response: VoiceResponse, config: CallboxConfig) -> None:
    """Connect the caller straight to the fallback contact."""
    response.dial(config.fallback_number)
