"""
Arivom: adaptive learning and retrieval engine.

Tracks topic mastery, adapts quiz difficulty and study plans to it, and
answers learner questions from uploaded course material (RAG).
"""

__version__ = "1.0.0"
