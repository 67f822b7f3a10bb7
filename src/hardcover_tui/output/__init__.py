"""Terminal output: rich console, text renderer, key parsing and driver."""
