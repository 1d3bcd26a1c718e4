"""
Circuit Narrator.

Identifies electronic components in photos with a zero-shot image
classifier and narrates their descriptions with a local text-to-speech
model.
"""

__version__ = "0.1.0"
