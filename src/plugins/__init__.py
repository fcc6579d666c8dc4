"""Host linter integrations for refdir."""
