"""Conversation normalization for the fragment service turn format."""
