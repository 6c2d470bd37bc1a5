"""HTTP surface of the Powerwatch service."""
