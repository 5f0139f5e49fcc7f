"""Version 1 of the Blog API."""
