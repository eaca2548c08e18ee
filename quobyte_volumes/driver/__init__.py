"""Quobyte volume lifecycle driver."""
