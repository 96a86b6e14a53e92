"""
LearnHub learning platform backend.

Summarizes YouTube videos with Gemini and exchanges personalized learning
plans with an n8n workflow through a webhook-and-poll handshake.
"""

from learnhub.config import config

__version__ = config.APP_VERSION
