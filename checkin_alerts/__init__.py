"""Check-in trend analysis and escalation alerting.

This package turns a subject's check-in history into trend data and decides,
with per-reason cooldowns, whether clinical staff should be alerted now.
Collaborators (history storage, notification delivery) are injected.
"""
