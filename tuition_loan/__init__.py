"""Deferred-payment tuition loan calculator."""
