"""Mantle — a personal AI agent that remembers across every channel."""
