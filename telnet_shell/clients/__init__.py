"""Protocol clients for device shells."""
