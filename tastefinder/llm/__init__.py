"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Hold the system prompt that asks the model for a structured query.
- Submit the conversation and return the raw completion text.
"""
