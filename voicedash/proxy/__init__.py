"""Server-side functions deployed next to the platform."""
