"""Group chat bot building blocks: reminders, group management, MIDI melodies, lookups and galleries."""

__version__ = "0.1.0"