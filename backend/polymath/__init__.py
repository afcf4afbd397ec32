"""Polymath: AI chat assistant backend."""
