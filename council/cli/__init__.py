"""CLI module for council."""
