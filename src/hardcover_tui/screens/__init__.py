"""Concrete screens hosted by the navigation stack."""
