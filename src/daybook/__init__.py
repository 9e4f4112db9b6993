"""Daybook - gratitude journal with optimistic, serialized entry mutations."""
