"""Source file discovery for refdir."""
