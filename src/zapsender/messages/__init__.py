"""Outgoing message templating."""
