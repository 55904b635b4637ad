"""Storage, fetching and analysis collaborators."""
