"""
Marketing copy and image generation.

One real backend (Gemini). Text personas and image styles only change the prompt.
"""
