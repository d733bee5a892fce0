"""Webhook endpoints called by Twilio."""
