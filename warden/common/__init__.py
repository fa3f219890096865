"""Small helpers shared across Warden packages."""
