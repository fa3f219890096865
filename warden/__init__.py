"""Warden: bootstrap and protect newly created GitHub repositories."""

from __future__ import annotations

__all__: list[str] = []
