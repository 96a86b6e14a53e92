"""
Core functionality for the LearnHub backend.

This package contains the transcript provider, the Gemini summarizer and the
learning-plan exchange with n8n.
"""
