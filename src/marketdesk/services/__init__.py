"""Cache-or-fetch orchestration per data domain."""
