"""
ai — text generation.

Modules:
    gemini_client — TextGenerator contract and the Gemini generateContent client
"""
