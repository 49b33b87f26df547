"""Credential core: stores and the session coordinator built on them."""
